"""
Pydantic schemas for in-app notifications
"""
from typing import Optional, List
from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    read: bool
    link_to: Optional[str] = None
    appointment_id: Optional[int] = None
    created_at: Optional[str] = None


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread: int


class UnreadCountResponse(BaseModel):
    count: int
