"""
Time slot computation over "HH:MM" strings and minutes of the day

These functions are pure: they never touch the database and take the
current time as an argument so callers control the clock.
"""
import re
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

MINUTES_PER_DAY = 24 * 60
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# (start, end) in minutes of the day, end exclusive
Interval = Tuple[int, int]


def time_to_minutes(value: str) -> int:
    """
    Convert "HH:MM" to minutes since midnight

    Raises:
        ValueError: If the value is not a valid 24h time
    """
    if not isinstance(value, str):
        raise ValueError(f"Invalid time: {value!r}")

    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time format: {value!r}. Expected HH:MM")

    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
    """
    Convert minutes since midnight to "HH:MM"

    Raises:
        ValueError: If minutes fall outside a single day
    """
    if not isinstance(minutes, int) or minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"Invalid minutes value: {minutes!r}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_valid_time(value: str) -> bool:
    try:
        time_to_minutes(value)
    except ValueError:
        return False
    return True


def parse_date(value: str) -> date:
    """Parse a "YYYY-MM-DD" date, raising ValueError on bad input"""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date format: {value!r}. Expected YYYY-MM-DD")


def day_of_week(value: str) -> int:
    """Weekday of a "YYYY-MM-DD" date with 0 = Sunday and 6 = Saturday"""
    return (parse_date(value).weekday() + 1) % 7


def ranges_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap test: touching intervals do not overlap"""
    return a_start < b_end and b_start < a_end


def to_interval(start_time: str, end_time: str) -> Interval:
    return time_to_minutes(start_time), time_to_minutes(end_time)


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Merge overlapping or touching intervals, dropping empty ones"""
    merged: List[Interval] = []
    for start, end in sorted(i for i in intervals if i[1] > i[0]):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def generate_free_blocks(work_start: int, work_end: int, occupied: Iterable[Interval]) -> List[Interval]:
    """
    Maximal free intervals inside working hours

    Args:
        work_start: Start of working hours in minutes
        work_end: End of working hours in minutes
        occupied: Busy periods (appointments, breaks, blocks) in minutes

    Returns:
        Sorted list of (start, end) intervals with no overlap with occupied
    """
    if work_end <= work_start:
        return []

    clipped = [
        (max(start, work_start), min(end, work_end))
        for start, end in occupied
        if ranges_overlap(start, end, work_start, work_end)
    ]

    blocks: List[Interval] = []
    cursor = work_start
    for start, end in merge_intervals(clipped):
        if start > cursor:
            blocks.append((cursor, start))
        cursor = max(cursor, end)
    if cursor < work_end:
        blocks.append((cursor, work_end))
    return blocks


def generate_available_slots(
    working_hours: Tuple[str, str],
    breaks: Sequence[Tuple[str, str]],
    appointments: Sequence[Tuple[str, str]],
    duration: int,
    step: int = 30,
) -> List[Dict[str, str]]:
    """
    Every slot of `duration` minutes that fits inside the free blocks

    Slot starts advance by `step` minutes from the start of each free
    block; a slot is kept when start + duration <= block end.

    Returns:
        Slots sorted by start, as {"start_time", "end_time"} dicts
    """
    if duration <= 0:
        raise ValueError("Duration must be positive")
    if step <= 0:
        raise ValueError("Step must be positive")

    work_start, work_end = to_interval(*working_hours)
    occupied = [to_interval(s, e) for s, e in breaks] + [to_interval(s, e) for s, e in appointments]

    slots = []
    for block_start, block_end in generate_free_blocks(work_start, work_end, occupied):
        start = block_start
        while start + duration <= block_end:
            slots.append({
                "start_time": minutes_to_time(start),
                "end_time": minutes_to_time(start + duration),
            })
            start += step

    slots.sort(key=lambda slot: time_to_minutes(slot["start_time"]))
    return slots


def slot_priority(start_time: str) -> int:
    """Rank of a start time: exact hour, half hour, quarter hour, multiple of five, other"""
    minute = time_to_minutes(start_time) % 60
    if minute == 0:
        return 0
    if minute == 30:
        return 1
    if minute % 15 == 0:
        return 2
    if minute % 5 == 0:
        return 3
    return 4


def prioritize_slots(slots: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """Order slots by round start times first, chronologically within each class"""
    return sorted(
        slots,
        key=lambda slot: (slot_priority(slot["start_time"]), time_to_minutes(slot["start_time"])),
    )


def filter_past_slots(
    slots: List[Dict[str, str]],
    slot_date: str,
    now: datetime,
    margin_minutes: int = 15,
) -> List[Dict[str, str]]:
    """
    Drop slots that already started, or start within the margin, today

    Args:
        slots: Slots with a "start_time" key
        slot_date: Date of the slots, "YYYY-MM-DD"
        now: Current local time
        margin_minutes: Minimum lead time for a slot starting today

    Returns:
        All slots for a future date, none for a past date and, for today,
        only slots starting at or after now + margin
    """
    target = parse_date(slot_date)
    today = now.date()

    if target > today:
        return list(slots)
    if target < today:
        return []

    threshold = now.hour * 60 + now.minute + margin_minutes
    kept = []
    for slot in slots:
        start: Optional[str] = slot.get("start_time") if isinstance(slot, dict) else None
        if not start:
            continue
        if time_to_minutes(start) >= threshold:
            kept.append(slot)
    return kept
