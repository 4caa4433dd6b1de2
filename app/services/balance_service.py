"""
Provider balance service

Balances are never edited incrementally: every sync recomputes them
from completed appointments and withdrawal requests.
"""
import logging
from datetime import datetime
from typing import Optional, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.models.appointment import Appointment, AppointmentStatus
from app.models.finance import (
    ProviderBalance,
    ProviderTransaction,
    PaymentWithdrawal,
    TransactionType,
    TransactionStatus,
    WithdrawalStatus,
)

logger = logging.getLogger(__name__)

IN_FLIGHT_STATUSES = (WithdrawalStatus.PENDING, WithdrawalStatus.PROCESSING)


def cents_to_reais(cents: int) -> float:
    return round((cents or 0) / 100, 2)


class BalanceService:
    """Service for provider earnings"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_or_create_balance(self, provider_id: int) -> ProviderBalance:
        result = await self.db.execute(
            select(ProviderBalance).where(ProviderBalance.provider_id == provider_id)
        )
        balance = result.scalar_one_or_none()

        if not balance:
            balance = ProviderBalance(provider_id=provider_id, balance=0.0, available_balance=0.0, pending_balance=0.0)
            self.db.add(balance)
            await self.db.flush()

        return balance

    async def _record_payment_transactions(self, provider_id: int, appointments: List[Appointment]):
        """One completed payment transaction per completed appointment"""
        result = await self.db.execute(
            select(ProviderTransaction.appointment_id).where(
                ProviderTransaction.provider_id == provider_id,
                ProviderTransaction.type == TransactionType.PAYMENT,
                ProviderTransaction.appointment_id.is_not(None),
            )
        )
        recorded = set(result.scalars().all())

        for appointment in appointments:
            if appointment.id in recorded:
                continue
            self.db.add(ProviderTransaction(
                provider_id=provider_id,
                amount=cents_to_reais(appointment.service_price),
                type=TransactionType.PAYMENT,
                status=TransactionStatus.COMPLETED,
                appointment_id=appointment.id,
                description=f"Pagamento do agendamento #{appointment.id} ({appointment.service_name or 'serviço'})",
                extra={"date": appointment.date, "start_time": appointment.start_time},
            ))

    async def sync_provider_balance(self, provider_id: int) -> ProviderBalance:
        """
        Recompute a provider balance

        balance = earnings of completed appointments - completed withdrawals
        pending_balance = pending and processing withdrawals
        available_balance = balance - pending_balance, never negative

        The caller owns the commit.
        """
        result = await self.db.execute(
            select(Appointment).where(
                Appointment.provider_id == provider_id,
                Appointment.status == AppointmentStatus.COMPLETED,
            )
        )
        completed = list(result.scalars().all())
        await self._record_payment_transactions(provider_id, completed)

        earned = sum(cents_to_reais(a.service_price) for a in completed)

        withdrawn = (await self.db.execute(
            select(func.coalesce(func.sum(PaymentWithdrawal.amount), 0.0)).where(
                PaymentWithdrawal.provider_id == provider_id,
                PaymentWithdrawal.status == WithdrawalStatus.COMPLETED,
            )
        )).scalar() or 0.0

        in_flight = (await self.db.execute(
            select(func.coalesce(func.sum(PaymentWithdrawal.amount), 0.0)).where(
                PaymentWithdrawal.provider_id == provider_id,
                PaymentWithdrawal.status.in_(IN_FLIGHT_STATUSES),
            )
        )).scalar() or 0.0

        balance = await self.get_or_create_balance(provider_id)
        balance.balance = max(0.0, round(earned - float(withdrawn), 2))
        balance.pending_balance = round(float(in_flight), 2)
        balance.available_balance = max(0.0, round(balance.balance - balance.pending_balance, 2))
        balance.updated_at = datetime.utcnow()
        await self.db.flush()

        logger.info(
            f"💰 [BALANCE] Provider {provider_id}: total R$ {balance.balance:.2f}, "
            f"available R$ {balance.available_balance:.2f}, pending R$ {balance.pending_balance:.2f}"
        )
        return balance

    async def list_transactions(
        self,
        provider_id: int,
        type: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[ProviderTransaction], int]:
        query = select(ProviderTransaction).where(ProviderTransaction.provider_id == provider_id)
        if type:
            query = query.where(ProviderTransaction.type == TransactionType(type))

        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        query = query.order_by(ProviderTransaction.created_at.desc(), ProviderTransaction.id.desc())
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total
