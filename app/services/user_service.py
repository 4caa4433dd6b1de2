"""
User administration service
"""
import logging
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from app.models.user import User, UserRole
from app.models.appointment import Appointment
from app.models.finance import PaymentWithdrawal, WithdrawalStatus
from app.core.exceptions import NotFoundError, BusinessRuleError
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class UserService:
    """Service for admin operations on user accounts"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def list_users(
        self,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[User], int]:
        """
        List users with filters

        Returns:
            Tuple of (users on the page, total count)
        """
        query = select(User)

        if role:
            query = query.where(User.role == UserRole(role))
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(User.name.ilike(pattern), User.email.ilike(pattern), User.phone.ilike(pattern)))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)

        return list(result.scalars().all()), total

    async def set_user_status(self, admin: User, user_id: int, is_active: bool) -> User:
        user = await self.get_user(user_id)

        if user.id == admin.id:
            raise BusinessRuleError("Admins cannot change their own status")

        user.is_active = is_active
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"👤 [ADMIN] User {user.email} {'activated' if is_active else 'deactivated'} by {admin.email}")
        return user

    async def verify_provider(self, provider_id: int, is_verified: bool) -> User:
        user = await self.get_user(provider_id)

        if user.role != UserRole.PROVIDER:
            raise BusinessRuleError("User is not a provider")

        user.is_verified = is_verified
        if is_verified:
            await NotificationService(self.db).notify(
                user.id,
                "Conta verificada",
                "Seu perfil foi verificado e já aparece para os clientes.",
                type="system",
            )
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"✅ [ADMIN] Provider {user.email} verification set to {is_verified}")
        return user

    async def get_stats(self) -> Dict[str, Any]:
        users_by_role = {role.value: 0 for role in UserRole}
        result = await self.db.execute(select(User.role, func.count(User.id)).group_by(User.role))
        for role, count in result.all():
            users_by_role[role.value] = count

        appointments_by_status: Dict[str, int] = {}
        result = await self.db.execute(
            select(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status)
        )
        for status, count in result.all():
            appointments_by_status[status.value] = count

        result = await self.db.execute(
            select(func.count(PaymentWithdrawal.id), func.coalesce(func.sum(PaymentWithdrawal.amount), 0.0)).where(
                PaymentWithdrawal.status.in_([WithdrawalStatus.PENDING, WithdrawalStatus.PROCESSING])
            )
        )
        pending_count, pending_amount = result.one()

        return {
            "users_by_role": users_by_role,
            "appointments_by_status": appointments_by_status,
            "total_users": sum(users_by_role.values()),
            "total_appointments": sum(appointments_by_status.values()),
            "pending_withdrawals": pending_count or 0,
            "pending_withdrawals_amount": round(float(pending_amount or 0), 2),
        }
