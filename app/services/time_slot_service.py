"""
Available time slot computation for a provider on a date

Combines the provider schedule stored in the database with the pure
generator in app.utils.time_slots, then filters out slots that are
already in the past in the marketplace timezone.
"""
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple
from zoneinfo import ZoneInfo
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_

from app.models.appointment import Appointment, AppointmentStatus
from app.models.provider import Availability, ProviderBreak, BlockedTimeSlot, ProviderService
from app.core.exceptions import NotFoundError, ValidationError
from app.services.availability_cache import AvailabilityCache, availability_cache
from app.utils.time_slots import (
    MINUTES_PER_DAY,
    day_of_week,
    filter_past_slots,
    generate_available_slots,
    minutes_to_time,
    prioritize_slots,
    ranges_overlap,
    time_to_minutes,
)
from app.config import settings

logger = logging.getLogger(__name__)

# (start_time, end_time, interval_minutes)
Window = Tuple[str, str, int]


def local_now() -> datetime:
    """Current wall clock time in the marketplace timezone, without tzinfo"""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


class TimeSlotService:
    """Service for provider availability queries"""

    def __init__(self, db: AsyncSession, cache: Optional[AvailabilityCache] = None):
        self.db = db
        self.cache = cache or availability_cache

    async def resolve_duration(
        self,
        provider_id: int,
        provider_service_id: Optional[int] = None,
        duration: Optional[int] = None,
    ) -> int:
        """
        Slot length in minutes, from a provider service or an explicit duration

        Raises:
            NotFoundError: If the service is unknown or belongs to another provider
            ValidationError: If neither a service nor a positive duration is given
        """
        if provider_service_id is not None:
            service = await self.db.get(ProviderService, provider_service_id)
            if not service or service.provider_id != provider_id:
                raise NotFoundError("Provider service not found")
            return service.execution_time

        if duration is None or duration <= 0:
            raise ValidationError("Either provider_service_id or a positive duration is required")

        return duration

    async def get_working_windows(self, provider_id: int, date: str) -> List[Window]:
        """
        Working windows of a provider on a date

        Rows for the exact date take precedence over the weekly rows of
        that weekday. Any row marked unavailable closes the day.
        """
        result = await self.db.execute(
            select(Availability).where(
                Availability.provider_id == provider_id,
                Availability.date == date,
            )
        )
        rows = list(result.scalars().all())

        if not rows:
            result = await self.db.execute(
                select(Availability).where(
                    Availability.provider_id == provider_id,
                    Availability.date.is_(None),
                    Availability.day_of_week == day_of_week(date),
                )
            )
            rows = list(result.scalars().all())

        if not rows or any(not row.is_available for row in rows):
            return []

        return sorted(
            ((row.start_time, row.end_time, row.interval_minutes or settings.DEFAULT_SLOT_INTERVAL_MINUTES) for row in rows),
            key=lambda window: time_to_minutes(window[0]),
        )

    async def get_occupied_periods(
        self,
        provider_id: int,
        date: str,
        exclude_appointment_id: Optional[int] = None,
    ) -> Tuple[List[Tuple[str, str]], List[Tuple[str, str]]]:
        """
        Busy periods of a provider on a date

        Returns:
            Tuple of (breaks and blocks, appointments). Appointments include
            the rest time configured on their service.
        """
        weekday = day_of_week(date)

        query = select(Appointment).where(
            Appointment.provider_id == provider_id,
            Appointment.date == date,
            Appointment.status != AppointmentStatus.CANCELED,
        )
        if exclude_appointment_id is not None:
            query = query.where(Appointment.id != exclude_appointment_id)
        appointments = (await self.db.execute(query)).scalars().all()

        booked = []
        for appointment in appointments:
            end = min(time_to_minutes(appointment.end_time) + (appointment.break_time or 0), MINUTES_PER_DAY - 1)
            booked.append((appointment.start_time, minutes_to_time(end)))

        breaks = (await self.db.execute(
            select(ProviderBreak).where(
                ProviderBreak.provider_id == provider_id,
                or_(
                    and_(ProviderBreak.is_recurring == True, ProviderBreak.day_of_week == weekday),
                    ProviderBreak.date == date,
                ),
            )
        )).scalars().all()

        blocks = (await self.db.execute(
            select(BlockedTimeSlot).where(
                BlockedTimeSlot.provider_id == provider_id,
                or_(BlockedTimeSlot.date == date, BlockedTimeSlot.date.is_(None)),
            )
        )).scalars().all()

        unavailable = [(b.start_time, b.end_time) for b in breaks] + [(b.start_time, b.end_time) for b in blocks]
        return unavailable, booked

    async def _compute_slots(self, provider_id: int, date: str, duration: int) -> List[Dict[str, str]]:
        cached = await self.cache.get(provider_id, date, duration)
        if cached is not None:
            return cached["slots"]

        windows = await self.get_working_windows(provider_id, date)
        unavailable, booked = await self.get_occupied_periods(provider_id, date)

        slots: List[Dict[str, str]] = []
        for start_time, end_time, interval in windows:
            slots.extend(generate_available_slots((start_time, end_time), unavailable, booked, duration, interval))

        # Overlapping windows can yield the same start twice
        unique = {slot["start_time"]: slot for slot in slots}
        slots = sorted(unique.values(), key=lambda slot: time_to_minutes(slot["start_time"]))

        await self.cache.set(provider_id, date, duration, {"slots": slots})
        return slots

    async def get_available_slots(
        self,
        provider_id: int,
        date: str,
        provider_service_id: Optional[int] = None,
        duration: Optional[int] = None,
        now: Optional[datetime] = None,
        prioritize: bool = False,
    ) -> Dict[str, Any]:
        """
        Bookable slots of a provider on a date

        Args:
            provider_id: Provider user ID
            date: Date as YYYY-MM-DD
            provider_service_id: Service whose execution time sets the slot length
            duration: Explicit slot length in minutes when no service is given
            now: Current local time, defaults to the marketplace clock
            prioritize: Put round start times (hours, half hours) first

        Returns:
            Dict with date, provider_id, duration and the slot list
        """
        slot_duration = await self.resolve_duration(provider_id, provider_service_id, duration)
        slots = await self._compute_slots(provider_id, date, slot_duration)

        slots = filter_past_slots(slots, date, now or local_now(), settings.SLOT_PAST_MARGIN_MINUTES)
        if prioritize:
            slots = prioritize_slots(slots)

        logger.info(f"🕒 [SLOTS] Provider {provider_id} on {date}: {len(slots)} slots of {slot_duration} min")
        return {
            "date": date,
            "provider_id": provider_id,
            "duration": slot_duration,
            "slots": [{**slot, "is_available": True} for slot in slots],
        }

    async def check_slot(
        self,
        provider_id: int,
        date: str,
        start_time: str,
        duration: int,
        now: Optional[datetime] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        """
        Whether [start_time, start_time + duration) can be booked

        The interval must lie inside one working window, overlap no break,
        block or appointment, and not be in the past.
        """
        start = time_to_minutes(start_time)
        end = start + duration
        if end >= MINUTES_PER_DAY:
            return False

        if not filter_past_slots([{"start_time": start_time}], date, now or local_now(), settings.SLOT_PAST_MARGIN_MINUTES):
            return False

        windows = await self.get_working_windows(provider_id, date)
        if not any(time_to_minutes(ws) <= start and end <= time_to_minutes(we) for ws, we, _ in windows):
            return False

        unavailable, booked = await self.get_occupied_periods(provider_id, date, exclude_appointment_id)
        for busy_start, busy_end in unavailable + booked:
            if ranges_overlap(start, end, time_to_minutes(busy_start), time_to_minutes(busy_end)):
                return False

        return True
