"""
Marketplace finance models: provider balances, transactions and withdrawals

Amounts in this module are in reais (two decimal places).
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, JSON, Enum as SQLEnum
import enum

from app.database import Base


class TransactionType(str, enum.Enum):
    PAYMENT = "payment"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class WithdrawalStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class PixKeyType(str, enum.Enum):
    CPF = "cpf"
    CNPJ = "cnpj"
    EMAIL = "email"
    PHONE = "phone"
    RANDOM = "random"


class ProviderBalance(Base):
    """Cached balance of a provider, recomputed from appointments and withdrawals"""
    __tablename__ = "provider_balances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    balance = Column(Float, default=0.0, nullable=False)
    available_balance = Column(Float, default=0.0, nullable=False)
    pending_balance = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "provider_id": self.provider_id,
            "balance": round(self.balance, 2),
            "available_balance": round(self.available_balance, 2),
            "pending_balance": round(self.pending_balance, 2),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ProviderTransaction(Base):
    """Ledger entry for money moving into (payment) or out of (withdrawal) a balance"""
    __tablename__ = "provider_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    type = Column(SQLEnum(TransactionType), nullable=False)
    status = Column(SQLEnum(TransactionStatus), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    withdrawal_id = Column(Integer, ForeignKey("payment_withdrawals.id"), nullable=True)
    description = Column(Text, nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "amount": round(self.amount, 2),
            "type": self.type.value,
            "status": self.status.value,
            "appointment_id": self.appointment_id,
            "withdrawal_id": self.withdrawal_id,
            "description": self.description,
            "metadata": self.extra,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class PaymentWithdrawal(Base):
    """Cash-out request of a provider, paid through PIX"""
    __tablename__ = "payment_withdrawals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    status = Column(SQLEnum(WithdrawalStatus), default=WithdrawalStatus.PENDING, nullable=False)
    payment_method = Column(String(30), default="pix", nullable=False)
    payment_details = Column(JSON, nullable=True)  # {"pixKey", "pixKeyType", provider snapshot}
    requested_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    processed_at = Column(DateTime, nullable=True)
    transaction_id = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    def to_dict(self):
        details = self.payment_details or {}
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "amount": round(self.amount, 2),
            "status": self.status.value,
            "payment_method": self.payment_method,
            "pix_info": {
                "pix_key": details.get("pixKey", ""),
                "pix_key_type": details.get("pixKeyType", ""),
            },
            "provider_info": {
                "id": self.provider_id,
                "name": details.get("providerName"),
                "email": details.get("providerEmail"),
                "phone": details.get("providerPhone"),
            },
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "transaction_id": self.transaction_id,
            "notes": self.notes,
        }
