"""
Slot availability against the shared calendar.

The grid is hourly from opening to closing hour inclusive. A slot is
free when no calendar event starts in that hour or runs into it from
an earlier day, and, for today, when it starts strictly after the
current moment.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from salon_booking.config import settings
from salon_booking.integrations.calendar import CalendarBackend
from salon_booking.integrations.calls import CollaboratorError, call_collaborator
from salon_booking.schemas.booking_schema import CalendarEvent

logger = logging.getLogger(__name__)


def slot_grid(
    opening_hour: int = settings.business.opening_hour,
    closing_hour: int = settings.business.closing_hour,
) -> list[str]:
    """All candidate start times, e.g. ``["08:00", ..., "18:00"]``."""
    return [f"{h:02d}:00" for h in range(opening_hour, closing_hour + 1)]


def compute_available_slots(
    day: date,
    occupied: Iterable[str],
    now: datetime,
    opening_hour: int = settings.business.opening_hour,
    closing_hour: int = settings.business.closing_hour,
) -> list[str]:
    """
    Return the bookable start times for ``day`` in ascending order.

    Args:
        day: Calendar day in the operating time zone.
        occupied: Grid start times (``HH:00``) already taken on that day.
        now: Current moment, timezone-aware in the operating zone.

    Returns:
        Grid times not in ``occupied``; when ``day`` is today, only those
        strictly after ``now``. An empty list means no availability.
    """
    taken = set(occupied)
    is_today = day == now.date()
    slots: list[str] = []
    for candidate in slot_grid(opening_hour, closing_hour):
        if candidate in taken:
            continue
        if is_today:
            starts_at = datetime.combine(day, time.fromisoformat(candidate), tzinfo=now.tzinfo)
            if starts_at <= now:
                continue
        slots.append(candidate)
    return slots


def occupied_start_times(
    events: Iterable[CalendarEvent], tz: ZoneInfo, day: Optional[date] = None
) -> set[str]:
    """
    Grid start times taken by ``events``.

    An event starting on ``day`` occupies its start truncated to the hour.
    An event carried over from an earlier day occupies every hour of
    ``day`` before it ends. Without ``day`` only starts are considered.
    """
    taken: set[str] = set()
    for event in events:
        start = event.start.astimezone(tz)
        if day is None or start.date() >= day:
            taken.add(f"{start.hour:02d}:00")
            continue
        end = event.end.astimezone(tz)
        hour = datetime.combine(day, time.min, tzinfo=tz)
        while hour < end and hour.date() == day:
            taken.add(f"{hour.hour:02d}:00")
            hour += timedelta(hours=1)
    return taken


def day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Start of ``day`` and start of the following day, in ``tz``."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    return start, datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)


async def list_available_slots(
    calendar: CalendarBackend,
    day: date,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
    timeout: float = settings.collaborators.timeout_sec,
) -> list[str]:
    """
    Look up the day's events and compute free slots.

    Raises:
        CollaboratorError: If the calendar lookup fails or times out.
    """
    tz = tz or settings.business.tz
    now = (now or datetime.now(tz)).astimezone(tz)
    time_min, time_max = day_bounds(day, tz)
    events = await call_collaborator(
        "list_events", calendar.list_events, time_min, time_max, timeout=timeout
    )
    return compute_available_slots(day, occupied_start_times(events, tz, day), now)


async def check_availability(
    calendar: CalendarBackend,
    day: date,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
    timeout: float = settings.collaborators.timeout_sec,
) -> list[str]:
    """Free slots for ``day``; calendar failures are logged and reported as none."""
    try:
        slots = await list_available_slots(calendar, day, now=now, tz=tz, timeout=timeout)
    except CollaboratorError:
        logger.exception("Availability lookup failed for %s", day.isoformat())
        return []
    logger.debug("%d slots available on %s", len(slots), day.isoformat())
    return slots
