"""
Provider self-service API endpoints: profile, services, schedule and earnings
"""
import logging
import math
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.auth import MessageResponse
from app.schemas.provider import (
    ProviderProfileUpdate,
    ProviderProfileResponse,
    ProviderServiceCreate,
    ProviderServiceUpdate,
    ProviderServiceResponse,
    WeeklyAvailabilityUpdate,
    DateAvailabilityCreate,
    AvailabilityResponse,
    ProviderBreakCreate,
    ProviderBreakResponse,
    BlockedSlotCreate,
    BlockedSlotResponse,
)
from app.schemas.finance import (
    BalanceResponse,
    TransactionListResponse,
    TransactionResponse,
    WithdrawalRequest,
    WithdrawalResponse,
)
from app.services.provider_service import ProviderService
from app.services.schedule_service import ScheduleService
from app.services.balance_service import BalanceService
from app.services.withdrawal_service import WithdrawalService
from app.dependencies import get_current_provider
from app.models.user import User
from app.core.exceptions import AgendoException, BusinessRuleError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/provider", tags=["Provider"])


# Profile

@router.get("/profile", response_model=ProviderProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    profile = await ProviderService(db).get_profile(current_user.id)
    await db.commit()
    return ProviderProfileResponse(**profile.to_dict())


@router.put("/profile", response_model=ProviderProfileResponse)
async def update_my_profile(
    data: ProviderProfileUpdate,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    profile = await ProviderService(db).update_profile(current_user.id, data)
    return ProviderProfileResponse(**profile.to_dict())


# Services

@router.get("/services", response_model=List[ProviderServiceResponse])
async def get_my_services(
    include_inactive: bool = Query(False),
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    return await ProviderService(db).list_services(current_user.id, active_only=not include_inactive)


@router.post("/services", response_model=ProviderServiceResponse, status_code=status.HTTP_201_CREATED)
async def add_service(
    data: ProviderServiceCreate,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    """
    Offer a catalog service

    - Execution time defaults to the template duration
    - Price is in cents
    """
    try:
        return await ProviderService(db).create_service(current_user.id, data)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/services/{service_id}", response_model=ProviderServiceResponse)
async def update_service(
    service_id: int,
    data: ProviderServiceUpdate,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await ProviderService(db).update_service(current_user.id, service_id, data)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/services/{service_id}", response_model=ProviderServiceResponse)
async def delete_service(
    service_id: int,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    """Stop offering a service; existing appointments are kept"""
    try:
        return await ProviderService(db).deactivate_service(current_user.id, service_id)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# Working hours

@router.get("/availability", response_model=List[AvailabilityResponse])
async def get_availability(
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    rows = await ScheduleService(db).list_availability(current_user.id)
    return [AvailabilityResponse(**row.to_dict()) for row in rows]


@router.put("/availability", response_model=List[AvailabilityResponse])
async def replace_weekly_availability(
    data: WeeklyAvailabilityUpdate,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    """Replace the weekly schedule (0 = Sunday)"""
    rows = await ScheduleService(db).replace_weekly_availability(current_user.id, data.days)
    return [AvailabilityResponse(**row.to_dict()) for row in rows]


@router.post("/availability", response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
async def set_date_availability(
    data: DateAvailabilityCreate,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    """Open or close a single date, overriding the weekly schedule"""
    row = await ScheduleService(db).set_date_availability(current_user.id, data)
    return AvailabilityResponse(**row.to_dict())


# Breaks

@router.get("/breaks", response_model=List[ProviderBreakResponse])
async def get_breaks(
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    rows = await ScheduleService(db).list_breaks(current_user.id)
    return [ProviderBreakResponse(**row.to_dict()) for row in rows]


@router.post("/breaks", response_model=ProviderBreakResponse, status_code=status.HTTP_201_CREATED)
async def create_break(
    data: ProviderBreakCreate,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    row = await ScheduleService(db).create_break(current_user.id, data)
    return ProviderBreakResponse(**row.to_dict())


@router.delete("/breaks/{break_id}", response_model=MessageResponse)
async def delete_break(
    break_id: int,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    try:
        await ScheduleService(db).delete_break(current_user.id, break_id)
        return MessageResponse(message="Break removed")

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# Blocked slots

@router.get("/blocked-slots", response_model=List[BlockedSlotResponse])
async def get_blocked_slots(
    date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    rows = await ScheduleService(db).list_blocked_slots(current_user.id, date)
    return [BlockedSlotResponse(**row.to_dict()) for row in rows]


@router.post("/blocked-slots", response_model=BlockedSlotResponse, status_code=status.HTTP_201_CREATED)
async def create_blocked_slot(
    data: BlockedSlotCreate,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    row = await ScheduleService(db).create_blocked_slot(current_user.id, data)
    return BlockedSlotResponse(**row.to_dict())


@router.delete("/blocked-slots/{blocked_id}", response_model=MessageResponse)
async def delete_blocked_slot(
    blocked_id: int,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    try:
        await ScheduleService(db).delete_blocked_slot(current_user.id, blocked_id)
        return MessageResponse(message="Blocked slot removed")

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# Earnings

@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    """Current balance, recomputed from appointments and withdrawals"""
    balance = await BalanceService(db).sync_provider_balance(current_user.id)
    await db.commit()
    return BalanceResponse(**balance.to_dict())


@router.get("/transactions", response_model=TransactionListResponse)
async def get_transactions(
    type: Optional[str] = Query(None, pattern=r"^(payment|withdrawal)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    service = BalanceService(db)
    await service.sync_provider_balance(current_user.id)
    await db.commit()

    transactions, total = await service.list_transactions(current_user.id, type, page, limit)
    return TransactionListResponse(
        transactions=[TransactionResponse(**t.to_dict()) for t in transactions],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total > 0 else 0,
    )


@router.post("/withdrawal-request", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED)
async def request_withdrawal(
    data: WithdrawalRequest,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    """
    Request a PIX withdrawal

    - One request per day
    - Amount between the minimum and the available balance
    """
    try:
        withdrawal = await WithdrawalService(db).request_withdrawal(current_user, data)
        return WithdrawalResponse(**withdrawal.to_dict())

    except BusinessRuleError as e:
        raise HTTPException(status_code=e.status_code, detail={"message": e.message, "code": e.code})
    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/withdrawal-requests", response_model=List[WithdrawalResponse])
async def list_my_withdrawals(
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    withdrawals = await WithdrawalService(db).list_provider_withdrawals(current_user.id)
    return [WithdrawalResponse(**w.to_dict()) for w in withdrawals]
