"""
Notification API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.auth import MessageResponse
from app.schemas.notification import NotificationResponse, NotificationListResponse, UnreadCountResponse
from app.services.notification_service import NotificationService
from app.dependencies import get_current_user
from app.models.user import User
from app.core.exceptions import AgendoException

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = NotificationService(db)
    notifications = await service.list_for_user(current_user.id, unread_only, limit)

    return NotificationListResponse(
        notifications=[NotificationResponse(**n.to_dict()) for n in notifications],
        total=len(notifications),
        unread=await service.unread_count(current_user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCountResponse(count=await NotificationService(db).unread_count(current_user.id))


@router.put("/read-all", response_model=MessageResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).mark_all_read(current_user.id)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        notification = await NotificationService(db).mark_read(current_user.id, notification_id)
        return NotificationResponse(**notification.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        await NotificationService(db).delete(current_user.id, notification_id)
        return MessageResponse(message="Notification deleted")

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
