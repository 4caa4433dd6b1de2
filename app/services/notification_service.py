"""
In-app notification service
"""
import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, delete

from app.models.notification import Notification
from app.models.user import User, UserRole
from app.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for creating and reading notifications"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        link_to: Optional[str] = None,
        appointment_id: Optional[int] = None,
    ) -> Notification:
        """
        Queue a notification in the current transaction

        The caller owns the commit so the notification is stored together
        with the change that produced it.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            link_to=link_to,
            appointment_id=appointment_id,
        )
        self.db.add(notification)
        await self.db.flush()
        logger.info(f"🔔 [NOTIFICATION] '{title}' queued for user {user_id}")
        return notification

    async def notify_admins(self, title: str, message: str, type: str = "system", link_to: Optional[str] = None):
        result = await self.db.execute(
            select(User.id).where(User.role == UserRole.ADMIN, User.is_active == True)
        )
        for admin_id in result.scalars().all():
            await self.notify(admin_id, title, message, type=type, link_to=link_to)

    async def list_for_user(self, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read == False)
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def unread_count(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read == False,
            )
        )
        return result.scalar() or 0

    async def _get_owned(self, user_id: int, notification_id: int) -> Notification:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()

        # Other users' notifications are reported as missing
        if not notification:
            raise NotFoundError("Notification not found")

        return notification

    async def mark_read(self, user_id: int, notification_id: int) -> Notification:
        notification = await self._get_owned(user_id, notification_id)
        notification.read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: int) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read == False)
            .values(read=True)
        )
        await self.db.commit()
        logger.info(f"🔔 [NOTIFICATION] {result.rowcount} notifications marked as read for user {user_id}")
        return result.rowcount

    async def delete(self, user_id: int, notification_id: int):
        notification = await self._get_owned(user_id, notification_id)
        await self.db.execute(delete(Notification).where(Notification.id == notification.id))
        await self.db.commit()
