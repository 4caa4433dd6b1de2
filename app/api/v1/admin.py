"""
Administration API endpoints
"""
import logging
import math
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.admin import UserStatusUpdate, ProviderVerificationUpdate, UserListResponse, StatsResponse
from app.schemas.auth import UserResponse
from app.schemas.finance import WithdrawalStatusUpdate, WithdrawalResponse, WithdrawalListResponse
from app.services.user_service import UserService
from app.services.withdrawal_service import WithdrawalService
from app.dependencies import get_current_admin, get_current_staff
from app.models.user import User
from app.core.exceptions import AgendoException, BusinessRuleError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = Query(None, pattern=r"^(client|provider|admin|support)$"),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search by name, e-mail or phone"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    """List users with filters (admin and support)"""
    users, total = await UserService(db).list_users(role, is_active, search, page, limit)

    return UserListResponse(
        users=[UserResponse(**user.to_dict()) for user in users],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total > 0 else 0,
    )


@router.put("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: int,
    data: UserStatusUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Activate or deactivate an account"""
    try:
        user = await UserService(db).set_user_status(current_user, user_id, data.is_active)
        return UserResponse(**user.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/providers/{provider_id}/verify", response_model=UserResponse)
async def verify_provider(
    provider_id: int,
    data: ProviderVerificationUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Mark a provider as verified so it shows up in the marketplace"""
    try:
        user = await UserService(db).verify_provider(provider_id, data.is_verified)
        return UserResponse(**user.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    current_user: User = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    """Platform counters"""
    return await UserService(db).get_stats()


@router.get("/withdrawals", response_model=WithdrawalListResponse)
async def list_withdrawals(
    status: Optional[str] = Query(None, pattern=r"^(pending|processing|completed|failed)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    """
    List withdrawal requests

    - Optional status filter
    - Each item carries PIX data and a provider snapshot
    """
    withdrawals, total = await WithdrawalService(db).list_withdrawals(status, page, limit)

    return WithdrawalListResponse(
        withdrawals=[WithdrawalResponse(**w.to_dict()) for w in withdrawals],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total > 0 else 0,
    )


@router.put("/withdrawals/{withdrawal_id}", response_model=WithdrawalResponse)
async def update_withdrawal(
    withdrawal_id: int,
    data: WithdrawalStatusUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a withdrawal

    - completed/failed set the processing date
    - failed returns the amount to the provider available balance
    """
    try:
        withdrawal = await WithdrawalService(db).update_withdrawal_status(
            withdrawal_id, data.status, data.transaction_id, data.notes
        )
        logger.info(f"🛡️ Admin {current_user.email} set withdrawal {withdrawal_id} to {data.status}")
        return WithdrawalResponse(**withdrawal.to_dict())

    except BusinessRuleError as e:
        raise HTTPException(status_code=e.status_code, detail={"message": e.message, "code": e.code})
    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
