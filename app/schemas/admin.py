"""
Pydantic schemas for administration endpoints
"""
from typing import Dict, List
from pydantic import BaseModel

from app.schemas.auth import UserResponse


class UserStatusUpdate(BaseModel):
    is_active: bool


class ProviderVerificationUpdate(BaseModel):
    is_verified: bool


class UserListResponse(BaseModel):
    """Paginated list of users"""
    users: List[UserResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class StatsResponse(BaseModel):
    """Platform counters for the admin dashboard"""
    users_by_role: Dict[str, int]
    appointments_by_status: Dict[str, int]
    total_users: int
    total_appointments: int
    pending_withdrawals: int
    pending_withdrawals_amount: float
