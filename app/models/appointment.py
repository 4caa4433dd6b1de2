"""
Appointment model for bookings between clients and providers
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum
import enum

from app.database import Base


class AppointmentStatus(str, enum.Enum):
    """Appointment lifecycle status"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    EXECUTING = "executing"
    COMPLETED = "completed"
    CANCELED = "canceled"
    NO_SHOW = "no_show"


class PaymentMethod(str, enum.Enum):
    """How the client pays for the appointment"""
    LOCAL = "local"
    CREDIT_CARD = "credit_card"
    PIX = "pix"


class PaymentStatus(str, enum.Enum):
    """Payment status as reported by the gateway or the provider"""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Appointment(Base):
    """
    A booked time slot of a provider service

    Prices are stored in cents. Names and phone are snapshots taken at
    booking time so listings do not depend on later profile edits.
    """
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_service_id = Column(Integer, ForeignKey("provider_services.id"), nullable=False)

    # Schedule
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    break_time = Column(Integer, default=0, nullable=False)

    status = Column(SQLEnum(AppointmentStatus), default=AppointmentStatus.PENDING, nullable=False)
    notes = Column(Text, nullable=True)
    is_manually_created = Column(Boolean, default=False, nullable=False)

    # Payment
    payment_method = Column(SQLEnum(PaymentMethod), default=PaymentMethod.LOCAL, nullable=False)
    payment_status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    payment_id = Column(String(64), nullable=True)
    service_price = Column(Integer, nullable=False, default=0)
    service_fee = Column(Integer, nullable=False, default=0)
    total_price = Column(Integer, nullable=False, default=0)

    # Display snapshots
    service_name = Column(String(255), nullable=True)
    provider_name = Column(String(255), nullable=True)
    client_name = Column(String(255), nullable=True)
    client_phone = Column(String(30), nullable=True)

    # Completion validation
    validation_code = Column(String(6), nullable=True)
    validation_code_hash = Column(String(64), nullable=True)
    validation_attempts = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    canceled_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Appointment {self.id} {self.date} {self.start_time}-{self.end_time} ({self.status})>"

    @property
    def is_open(self) -> bool:
        return self.status not in (AppointmentStatus.CANCELED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW)

    def to_dict(self, include_code: bool = False):
        """Convert model to dictionary; the plain validation code is opt-in"""
        data = {
            "id": self.id,
            "client_id": self.client_id,
            "provider_id": self.provider_id,
            "provider_service_id": self.provider_service_id,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status.value,
            "notes": self.notes,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "payment_status": self.payment_status.value if self.payment_status else None,
            "payment_id": self.payment_id,
            "service_price": self.service_price,
            "service_fee": self.service_fee,
            "total_price": self.total_price,
            "service_name": self.service_name,
            "provider_name": self.provider_name,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "validation_attempts": self.validation_attempts,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "canceled_at": self.canceled_at.isoformat() if self.canceled_at else None,
        }
        if include_code:
            data["validation_code"] = self.validation_code
        return data
