"""
Time slot availability API endpoints
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.time_slot import AvailableSlotsResponse, SlotCheckResponse
from app.services.time_slot_service import TimeSlotService
from app.utils.time_slots import minutes_to_time, parse_date, time_to_minutes
from app.core.exceptions import AgendoException

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/time-slots", tags=["Time Slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def get_available_slots(
    provider_id: int = Query(..., description="Provider user ID"),
    date: str = Query(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD"),
    provider_service_id: Optional[int] = Query(None, description="Service whose duration sets the slot length"),
    duration: Optional[int] = Query(None, ge=5, le=1440, description="Slot length in minutes"),
    prioritize: bool = Query(False, description="Round start times first"),
    db: AsyncSession = Depends(get_db),
):
    """
    Available time slots of a provider on a date

    - Past slots are removed, including those starting within the next 15 minutes
    - Either provider_service_id or duration is required
    """
    try:
        parse_date(date)
        return await TimeSlotService(db).get_available_slots(
            provider_id,
            date,
            provider_service_id=provider_service_id,
            duration=duration,
            prioritize=prioritize,
        )

    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/check", response_model=SlotCheckResponse)
async def check_slot(
    provider_id: int = Query(...),
    date: str = Query(..., pattern=r"^\d{4}-\d{2}-\d{2}$"),
    start_time: str = Query(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$"),
    provider_service_id: Optional[int] = Query(None),
    duration: Optional[int] = Query(None, ge=5, le=1440),
    db: AsyncSession = Depends(get_db),
):
    """Whether a specific start time can be booked"""
    try:
        parse_date(date)
        service = TimeSlotService(db)
        slot_duration = await service.resolve_duration(provider_id, provider_service_id, duration)
        available = await service.check_slot(provider_id, date, start_time, slot_duration)

        end = time_to_minutes(start_time) + slot_duration
        return SlotCheckResponse(
            provider_id=provider_id,
            date=date,
            start_time=start_time,
            end_time=minutes_to_time(min(end, 24 * 60 - 1)),
            duration=slot_duration,
            available=available,
        )

    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
