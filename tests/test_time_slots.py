"""
Tests for the pure time slot helpers
"""
from datetime import datetime

import pytest

from app.utils.time_slots import (
    day_of_week,
    filter_past_slots,
    generate_available_slots,
    generate_free_blocks,
    merge_intervals,
    minutes_to_time,
    prioritize_slots,
    ranges_overlap,
    time_to_minutes,
)


def starts(slots):
    return [slot["start_time"] for slot in slots]


class TestTimeConversion:
    """Test HH:MM <-> minutes conversion"""

    def test_time_to_minutes(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes("23:59") == 1439

    @pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "ab:cd", "", None])
    def test_time_to_minutes_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            time_to_minutes(value)

    def test_minutes_to_time(self):
        assert minutes_to_time(0) == "00:00"
        assert minutes_to_time(570) == "09:30"
        assert minutes_to_time(1439) == "23:59"

    @pytest.mark.parametrize("value", [-1, 1440])
    def test_minutes_to_time_rejects_out_of_day(self, value):
        with pytest.raises(ValueError):
            minutes_to_time(value)

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week("2025-03-09") == 0
        assert day_of_week("2025-03-10") == 1
        assert day_of_week("2025-03-15") == 6


class TestIntervals:
    """Test interval arithmetic"""

    def test_touching_ranges_do_not_overlap(self):
        assert not ranges_overlap(0, 10, 10, 20)
        assert ranges_overlap(0, 11, 10, 20)
        assert ranges_overlap(5, 6, 0, 20)

    def test_merge_intervals(self):
        assert merge_intervals([(60, 90), (0, 30), (30, 45), (80, 120), (200, 200)]) == [(0, 45), (60, 120)]

    def test_free_blocks_around_lunch(self):
        assert generate_free_blocks(540, 1080, [(720, 780)]) == [(540, 720), (780, 1080)]

    def test_free_blocks_merge_overlapping_busy_periods(self):
        blocks = generate_free_blocks(540, 1080, [(600, 660), (630, 700), (1000, 1200)])
        assert blocks == [(540, 600), (700, 1000)]

    def test_free_blocks_ignore_busy_outside_hours(self):
        assert generate_free_blocks(540, 600, [(0, 100), (700, 800)]) == [(540, 600)]

    def test_fully_booked_day_has_no_blocks(self):
        assert generate_free_blocks(540, 600, [(500, 700)]) == []


class TestGenerateAvailableSlots:
    """Test slot generation"""

    def test_slots_skip_breaks(self):
        slots = generate_available_slots(("09:00", "12:00"), [("10:00", "10:30")], [], 60, 30)

        assert starts(slots) == ["09:00", "10:30", "11:00"]
        assert slots[0]["end_time"] == "10:00"
        assert slots[-1]["end_time"] == "12:00"

    def test_slots_restart_at_end_of_appointment(self):
        slots = generate_available_slots(("08:00", "11:00"), [], [("08:00", "08:45")], 60, 30)

        assert starts(slots) == ["08:45", "09:15", "09:45"]

    def test_slots_never_overlap_busy_periods(self):
        busy = [("10:00", "11:15"), ("14:40", "15:00")]
        slots = generate_available_slots(("08:00", "18:00"), [("12:00", "13:00")], busy, 45, 15)

        for slot in slots:
            start, end = time_to_minutes(slot["start_time"]), time_to_minutes(slot["end_time"])
            for busy_start, busy_end in busy + [("12:00", "13:00")]:
                assert not ranges_overlap(start, end, time_to_minutes(busy_start), time_to_minutes(busy_end))
            assert end - start == 45

    def test_duration_longer_than_free_time(self):
        assert generate_available_slots(("09:00", "10:00"), [], [], 90) == []

    def test_invalid_duration(self):
        with pytest.raises(ValueError):
            generate_available_slots(("09:00", "10:00"), [], [], 0)


class TestPrioritizeSlots:
    """Test round start time ordering"""

    def test_round_times_first(self):
        slots = [{"start_time": t} for t in ["09:05", "09:15", "09:30", "10:00", "09:00", "09:07"]]

        assert starts(prioritize_slots(slots)) == ["09:00", "10:00", "09:30", "09:15", "09:05", "09:07"]


class TestFilterPastSlots:
    """Test removal of slots in the past"""

    @pytest.fixture
    def slots(self):
        return [{"start_time": minutes_to_time(m)} for m in range(540, 721, 30)]

    def test_future_date_keeps_everything(self, slots):
        now = datetime(2025, 3, 10, 10, 0)
        assert filter_past_slots(slots, "2025-03-11", now) == slots

    def test_past_date_keeps_nothing(self, slots):
        now = datetime(2025, 3, 10, 10, 0)
        assert filter_past_slots(slots, "2025-03-09", now) == []

    def test_today_applies_margin(self, slots):
        now = datetime(2025, 3, 10, 10, 0)
        assert starts(filter_past_slots(slots, "2025-03-10", now)) == ["10:30", "11:00", "11:30", "12:00"]

    def test_slot_exactly_at_margin_is_kept(self, slots):
        now = datetime(2025, 3, 10, 10, 15)
        assert starts(filter_past_slots(slots, "2025-03-10", now))[0] == "10:30"

    def test_slot_inside_margin_is_dropped(self, slots):
        now = datetime(2025, 3, 10, 10, 16)
        assert starts(filter_past_slots(slots, "2025-03-10", now))[0] == "11:00"

    def test_slots_without_start_are_dropped(self):
        now = datetime(2025, 3, 10, 8, 0)
        result = filter_past_slots([{"end_time": "10:00"}, {"start_time": "11:00"}], "2025-03-10", now)
        assert result == [{"start_time": "11:00"}]
