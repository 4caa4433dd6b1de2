"""
Provider working hours, breaks and blocked time slots
"""
import logging
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from app.models.provider import Availability, ProviderBreak, BlockedTimeSlot
from app.schemas.provider import (
    AvailabilityItem,
    DateAvailabilityCreate,
    ProviderBreakCreate,
    BlockedSlotCreate,
)
from app.core.exceptions import NotFoundError, AuthorizationError
from app.services.availability_cache import AvailabilityCache, availability_cache
from app.utils.time_slots import day_of_week

logger = logging.getLogger(__name__)


class ScheduleService:
    """Service for the schedule a provider exposes to clients"""

    def __init__(self, db: AsyncSession, cache: Optional[AvailabilityCache] = None):
        self.db = db
        self.cache = cache or availability_cache

    # Working hours

    async def list_availability(self, provider_id: int) -> List[Availability]:
        result = await self.db.execute(
            select(Availability)
            .where(Availability.provider_id == provider_id)
            .order_by(Availability.date.is_not(None), Availability.date, Availability.day_of_week, Availability.start_time)
        )
        return list(result.scalars().all())

    async def replace_weekly_availability(self, provider_id: int, days: List[AvailabilityItem]) -> List[Availability]:
        """
        Replace the weekly schedule

        Date specific rows are kept; every weekly row is replaced by the
        submitted days.
        """
        await self.db.execute(
            delete(Availability).where(
                Availability.provider_id == provider_id,
                Availability.date.is_(None),
            )
        )
        for item in days:
            self.db.add(Availability(provider_id=provider_id, date=None, **item.model_dump()))

        await self.db.commit()
        await self.cache.invalidate(provider_id)

        logger.info(f"📅 [SCHEDULE] Weekly availability replaced for provider {provider_id} ({len(days)} days)")
        return await self.list_availability(provider_id)

    async def set_date_availability(self, provider_id: int, data: DateAvailabilityCreate) -> Availability:
        """Override the working hours of one date; an earlier override for that date is replaced"""
        await self.db.execute(
            delete(Availability).where(
                Availability.provider_id == provider_id,
                Availability.date == data.date,
            )
        )
        availability = Availability(
            provider_id=provider_id,
            day_of_week=day_of_week(data.date),
            **data.model_dump(),
        )
        self.db.add(availability)
        await self.db.commit()
        await self.db.refresh(availability)

        await self.cache.invalidate(provider_id, data.date)
        logger.info(
            f"📅 [SCHEDULE] Provider {provider_id} on {data.date}: "
            f"{'open ' + data.start_time + '-' + data.end_time if data.is_available else 'closed'}"
        )
        return availability

    # Breaks

    async def list_breaks(self, provider_id: int) -> List[ProviderBreak]:
        result = await self.db.execute(
            select(ProviderBreak)
            .where(ProviderBreak.provider_id == provider_id)
            .order_by(ProviderBreak.day_of_week, ProviderBreak.start_time)
        )
        return list(result.scalars().all())

    async def create_break(self, provider_id: int, data: ProviderBreakCreate) -> ProviderBreak:
        values = data.model_dump()
        if values["day_of_week"] is None:
            values["day_of_week"] = day_of_week(values["date"])

        provider_break = ProviderBreak(provider_id=provider_id, **values)
        self.db.add(provider_break)
        await self.db.commit()
        await self.db.refresh(provider_break)

        await self.cache.invalidate(provider_id)
        return provider_break

    async def delete_break(self, provider_id: int, break_id: int):
        provider_break = await self.db.get(ProviderBreak, break_id)
        if not provider_break:
            raise NotFoundError("Break not found")
        if provider_break.provider_id != provider_id:
            raise AuthorizationError("This break belongs to another provider")

        await self.db.delete(provider_break)
        await self.db.commit()
        await self.cache.invalidate(provider_id)

    # Blocked slots

    async def list_blocked_slots(self, provider_id: int, date: Optional[str] = None) -> List[BlockedTimeSlot]:
        query = select(BlockedTimeSlot).where(BlockedTimeSlot.provider_id == provider_id)
        if date:
            query = query.where(BlockedTimeSlot.date == date)
        result = await self.db.execute(query.order_by(BlockedTimeSlot.date, BlockedTimeSlot.start_time))
        return list(result.scalars().all())

    async def create_blocked_slot(self, provider_id: int, data: BlockedSlotCreate) -> BlockedTimeSlot:
        blocked = BlockedTimeSlot(provider_id=provider_id, **data.model_dump())
        self.db.add(blocked)
        await self.db.commit()
        await self.db.refresh(blocked)

        await self.cache.invalidate(provider_id, data.date)
        logger.info(f"⛔ [SCHEDULE] Provider {provider_id} blocked {data.date or 'every day'} {data.start_time}-{data.end_time}")
        return blocked

    async def delete_blocked_slot(self, provider_id: int, blocked_id: int):
        blocked = await self.db.get(BlockedTimeSlot, blocked_id)
        if not blocked:
            raise NotFoundError("Blocked slot not found")
        if blocked.provider_id != provider_id:
            raise AuthorizationError("This blocked slot belongs to another provider")

        await self.db.delete(blocked)
        await self.db.commit()
        await self.cache.invalidate(provider_id, blocked.date)
