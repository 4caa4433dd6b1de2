"""
Withdrawal service for provider cash-out requests and their admin review
"""
import logging
from datetime import datetime, time, timezone
from typing import Optional, List, Tuple
from zoneinfo import ZoneInfo
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.models.user import User
from app.models.finance import (
    PaymentWithdrawal,
    ProviderTransaction,
    TransactionType,
    TransactionStatus,
    WithdrawalStatus,
)
from app.schemas.finance import WithdrawalRequest
from app.core.exceptions import NotFoundError, BusinessRuleError, ValidationError
from app.services.balance_service import BalanceService
from app.services.notification_service import NotificationService
from app.utils.validators import validate_pix_key
from app.config import settings

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    WithdrawalStatus.PENDING: {WithdrawalStatus.PROCESSING, WithdrawalStatus.COMPLETED, WithdrawalStatus.FAILED},
    WithdrawalStatus.PROCESSING: {WithdrawalStatus.COMPLETED, WithdrawalStatus.FAILED},
    WithdrawalStatus.COMPLETED: set(),
    WithdrawalStatus.FAILED: set(),
}

TRANSACTION_STATUS = {
    WithdrawalStatus.PENDING: TransactionStatus.PENDING,
    WithdrawalStatus.PROCESSING: TransactionStatus.PENDING,
    WithdrawalStatus.COMPLETED: TransactionStatus.COMPLETED,
    WithdrawalStatus.FAILED: TransactionStatus.FAILED,
}


def start_of_local_day_utc(now: Optional[datetime] = None) -> datetime:
    """Midnight of the current marketplace day, as naive UTC"""
    tz = ZoneInfo(settings.TIMEZONE)
    local = (now or datetime.now(timezone.utc)).astimezone(tz)
    midnight = datetime.combine(local.date(), time.min, tzinfo=tz)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


class WithdrawalService:
    """Service for withdrawal operations"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.balances = BalanceService(db)
        self.notifications = NotificationService(db)

    async def request_withdrawal(self, provider: User, data: WithdrawalRequest) -> PaymentWithdrawal:
        """
        Create a pending withdrawal

        Raises:
            ValidationError: If the PIX key does not match its type
            BusinessRuleError: On daily limit, minimum amount or insufficient balance
        """
        logger.info(f"💸 [WITHDRAWAL] Provider {provider.id} requests R$ {data.amount:.2f}")

        is_valid, error = validate_pix_key(data.pix_key, data.pix_key_type)
        if not is_valid:
            raise ValidationError(error)

        result = await self.db.execute(
            select(func.count(PaymentWithdrawal.id)).where(
                PaymentWithdrawal.provider_id == provider.id,
                PaymentWithdrawal.requested_at >= start_of_local_day_utc(),
            )
        )
        if (result.scalar() or 0) > 0:
            logger.warning(f"⚠️ [WITHDRAWAL] Daily limit reached for provider {provider.id}")
            raise BusinessRuleError("Only one withdrawal request is allowed per day", code="DAILY_LIMIT_EXCEEDED")

        amount = round(data.amount, 2)
        if amount < settings.WITHDRAWAL_MIN_AMOUNT:
            raise BusinessRuleError(
                f"Minimum withdrawal amount is R$ {settings.WITHDRAWAL_MIN_AMOUNT:.2f}",
                code="AMOUNT_BELOW_MINIMUM",
            )

        balance = await self.balances.sync_provider_balance(provider.id)
        if amount > balance.available_balance:
            raise BusinessRuleError(
                f"Insufficient balance. Available: R$ {balance.available_balance:.2f}",
                code="INSUFFICIENT_BALANCE",
            )

        withdrawal = PaymentWithdrawal(
            provider_id=provider.id,
            amount=amount,
            status=WithdrawalStatus.PENDING,
            payment_method="pix",
            payment_details={
                "pixKey": data.pix_key.strip(),
                "pixKeyType": data.pix_key_type,
                "providerName": provider.name,
                "providerEmail": provider.email,
                "providerPhone": provider.phone,
            },
        )
        self.db.add(withdrawal)
        await self.db.flush()

        self.db.add(ProviderTransaction(
            provider_id=provider.id,
            amount=amount,
            type=TransactionType.WITHDRAWAL,
            status=TransactionStatus.PENDING,
            withdrawal_id=withdrawal.id,
            description=f"Saque via PIX ({data.pix_key_type})",
        ))

        await self.balances.sync_provider_balance(provider.id)
        await self.notifications.notify_admins(
            "Nova solicitação de saque",
            f"{provider.name or provider.email} solicitou um saque de R$ {amount:.2f}.",
            type="payment",
            link_to="/admin/withdrawals",
        )
        await self.db.commit()
        await self.db.refresh(withdrawal)

        logger.info(f"✅ [WITHDRAWAL] Withdrawal {withdrawal.id} created for provider {provider.id}")
        return withdrawal

    async def list_provider_withdrawals(self, provider_id: int) -> List[PaymentWithdrawal]:
        result = await self.db.execute(
            select(PaymentWithdrawal)
            .where(PaymentWithdrawal.provider_id == provider_id)
            .order_by(PaymentWithdrawal.requested_at.desc(), PaymentWithdrawal.id.desc())
        )
        return list(result.scalars().all())

    async def list_withdrawals(
        self,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[PaymentWithdrawal], int]:
        query = select(PaymentWithdrawal)
        if status:
            query = query.where(PaymentWithdrawal.status == WithdrawalStatus(status))

        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        query = query.order_by(PaymentWithdrawal.requested_at.desc(), PaymentWithdrawal.id.desc())
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def update_withdrawal_status(
        self,
        withdrawal_id: int,
        status: str,
        transaction_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PaymentWithdrawal:
        """
        Move a withdrawal forward

        Completed and failed are final. A failed withdrawal stops counting
        as pending, which returns its amount to the available balance.
        """
        withdrawal = await self.db.get(PaymentWithdrawal, withdrawal_id)
        if not withdrawal:
            raise NotFoundError("Withdrawal not found")

        new_status = WithdrawalStatus(status)
        allowed = ALLOWED_TRANSITIONS[withdrawal.status]
        # Repeating an open status only updates notes; final statuses never change again
        if new_status not in allowed and (new_status != withdrawal.status or not allowed):
            raise BusinessRuleError(
                f"Cannot change withdrawal from {withdrawal.status.value} to {new_status.value}",
                code="INVALID_STATUS_TRANSITION",
            )

        withdrawal.status = new_status
        if transaction_id is not None:
            withdrawal.transaction_id = transaction_id
        if notes is not None:
            withdrawal.notes = notes
        if new_status in (WithdrawalStatus.COMPLETED, WithdrawalStatus.FAILED):
            withdrawal.processed_at = datetime.utcnow()

        result = await self.db.execute(
            select(ProviderTransaction).where(
                ProviderTransaction.withdrawal_id == withdrawal.id,
                ProviderTransaction.type == TransactionType.WITHDRAWAL,
            )
        )
        for transaction in result.scalars().all():
            transaction.status = TRANSACTION_STATUS[new_status]
            transaction.extra = {
                **(transaction.extra or {}),
                "withdrawal_status": new_status.value,
                "external_transaction_id": withdrawal.transaction_id,
            }

        await self.db.flush()
        await self.balances.sync_provider_balance(withdrawal.provider_id)

        messages = {
            WithdrawalStatus.PROCESSING: "Seu saque está sendo processado.",
            WithdrawalStatus.COMPLETED: f"Seu saque de R$ {withdrawal.amount:.2f} foi concluído.",
            WithdrawalStatus.FAILED: f"Seu saque de R$ {withdrawal.amount:.2f} falhou e o valor voltou para o seu saldo.",
        }
        if new_status in messages:
            await self.notifications.notify(
                withdrawal.provider_id,
                "Atualização de saque",
                messages[new_status],
                type="payment",
                link_to="/provider/withdrawals",
            )

        await self.db.commit()
        await self.db.refresh(withdrawal)

        logger.info(f"💸 [WITHDRAWAL] Withdrawal {withdrawal.id} is now {new_status.value}")
        return withdrawal
