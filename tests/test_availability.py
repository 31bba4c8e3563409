"""Tests for slot availability computation and calendar lookup."""

from datetime import date, datetime, timedelta, timezone

import pytest

from salon_booking.schemas.booking_schema import CalendarEvent
from salon_booking.tools.availability import (
    check_availability,
    compute_available_slots,
    occupied_start_times,
    slot_grid,
)

from conftest import FIXED_NOW, TZ, FailingCalendar, SlowCalendar

FULL_GRID = [
    "08:00", "09:00", "10:00", "11:00", "12:00", "13:00",
    "14:00", "15:00", "16:00", "17:00", "18:00",
]
FUTURE_DAY = date(2030, 5, 20)


class TestSlotGrid:
    def test_default_grid_has_eleven_hourly_slots(self):
        assert slot_grid(8, 18) == FULL_GRID

    def test_single_hour_grid(self):
        assert slot_grid(9, 9) == ["09:00"]


class TestComputeAvailableSlots:
    def test_future_day_without_events_offers_full_grid(self):
        assert compute_available_slots(FUTURE_DAY, set(), FIXED_NOW, 8, 18) == FULL_GRID

    def test_occupied_times_are_excluded(self):
        slots = compute_available_slots(FUTURE_DAY, {"09:00", "14:00"}, FIXED_NOW, 8, 18)
        assert "09:00" not in slots
        assert "14:00" not in slots
        assert len(slots) == 9

    def test_occupied_times_off_grid_are_ignored(self):
        slots = compute_available_slots(FUTURE_DAY, {"07:00", "23:00"}, FIXED_NOW, 8, 18)
        assert slots == FULL_GRID

    def test_today_excludes_past_and_current_hour(self):
        # FIXED_NOW is 10:30
        slots = compute_available_slots(FIXED_NOW.date(), set(), FIXED_NOW, 8, 18)
        assert slots[0] == "11:00"
        assert slots == FULL_GRID[3:]

    def test_today_excludes_slot_starting_exactly_now(self):
        now = FIXED_NOW.replace(hour=11, minute=0)
        slots = compute_available_slots(now.date(), set(), now, 8, 18)
        assert "11:00" not in slots
        assert slots[0] == "12:00"

    def test_today_after_closing_is_empty(self):
        now = FIXED_NOW.replace(hour=18, minute=5)
        assert compute_available_slots(now.date(), set(), now, 8, 18) == []

    def test_fully_booked_day_is_empty(self):
        assert compute_available_slots(FUTURE_DAY, set(FULL_GRID), FIXED_NOW, 8, 18) == []

    def test_result_is_strictly_ascending(self):
        slots = compute_available_slots(FUTURE_DAY, {"12:00"}, FIXED_NOW, 8, 18)
        assert slots == sorted(slots)
        assert len(slots) == len(set(slots))

    def test_same_inputs_same_output(self):
        occupied = {"10:00", "16:00"}
        first = compute_available_slots(FIXED_NOW.date(), occupied, FIXED_NOW, 8, 18)
        second = compute_available_slots(FIXED_NOW.date(), occupied, FIXED_NOW, 8, 18)
        assert first == second


class TestOccupiedStartTimes:
    def _event(self, start: datetime) -> CalendarEvent:
        return CalendarEvent(id="e1", start=start, end=start + timedelta(hours=1))

    def test_start_is_truncated_to_the_hour(self):
        event = self._event(datetime(2030, 5, 20, 9, 30, tzinfo=TZ))
        assert occupied_start_times([event], TZ) == {"09:00"}

    def test_start_is_converted_to_operating_zone(self):
        # 12:00 UTC is 09:00 in Sao Paulo
        event = self._event(datetime(2030, 5, 20, 12, 0, tzinfo=timezone.utc))
        assert occupied_start_times([event], TZ) == {"09:00"}

    def test_event_carried_over_from_previous_day_blocks_until_it_ends(self):
        event = CalendarEvent(
            id="e1",
            start=datetime(2030, 5, 19, 9, 0, tzinfo=TZ),
            end=datetime(2030, 5, 20, 10, 0, tzinfo=TZ),
        )
        assert occupied_start_times([event], TZ, FUTURE_DAY) == {
            f"{h:02d}:00" for h in range(0, 10)
        }

    def test_event_starting_on_day_keeps_truncated_start(self):
        event = self._event(datetime(2030, 5, 20, 9, 30, tzinfo=TZ))
        assert occupied_start_times([event], TZ, FUTURE_DAY) == {"09:00"}


class TestCheckAvailability:
    @pytest.mark.asyncio
    async def test_booked_event_removes_slot(self, calendar):
        start = datetime(2030, 5, 20, 9, 0, tzinfo=TZ)
        calendar.insert_event(start, start + timedelta(hours=1), "Booking - Ana", "")
        slots = await check_availability(calendar, FUTURE_DAY, now=FIXED_NOW, tz=TZ)
        assert "09:00" not in slots
        assert len(slots) == 10

    @pytest.mark.asyncio
    async def test_events_on_other_days_do_not_count(self, calendar):
        start = datetime(2030, 5, 21, 9, 0, tzinfo=TZ)
        calendar.insert_event(start, start + timedelta(hours=1), "Booking - Ana", "")
        slots = await check_availability(calendar, FUTURE_DAY, now=FIXED_NOW, tz=TZ)
        assert slots == FULL_GRID

    @pytest.mark.asyncio
    async def test_calendar_failure_reports_no_availability(self):
        calendar = FailingCalendar({"list"})
        slots = await check_availability(calendar, FUTURE_DAY, now=FIXED_NOW, tz=TZ)
        assert slots == []

    @pytest.mark.asyncio
    async def test_calendar_timeout_reports_no_availability(self):
        slots = await check_availability(
            SlowCalendar(), FUTURE_DAY, now=FIXED_NOW, tz=TZ, timeout=0.05
        )
        assert slots == []

    @pytest.mark.asyncio
    async def test_multi_day_event_hides_covered_slots(self, calendar):
        calendar.insert_event(
            datetime(2030, 5, 19, 9, 0, tzinfo=TZ),
            datetime(2030, 5, 20, 10, 0, tzinfo=TZ),
            "Closed for maintenance",
            "",
        )
        slots = await check_availability(calendar, FUTURE_DAY, now=FIXED_NOW, tz=TZ)
        assert slots == FULL_GRID[2:]

    @pytest.mark.asyncio
    async def test_utc_clock_is_read_in_operating_zone(self, calendar):
        # 02:30 UTC on the 16th is 23:30 on the 15th in Sao Paulo
        now_utc = datetime(2030, 5, 16, 2, 30, tzinfo=timezone.utc)
        slots = await check_availability(calendar, date(2030, 5, 15), now=now_utc, tz=TZ)
        assert slots == []

    @pytest.mark.asyncio
    async def test_utc_clock_filters_today_in_operating_zone(self, calendar):
        # 14:30 UTC is 11:30 in Sao Paulo
        now_utc = datetime(2030, 5, 15, 14, 30, tzinfo=timezone.utc)
        slots = await check_availability(calendar, date(2030, 5, 15), now=now_utc, tz=TZ)
        assert slots[0] == "12:00"
