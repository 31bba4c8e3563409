"""
Cancellation: find a customer's future bookings and cancel one.

Bookings are recovered from the calendar by a raw substring match of
the tax id against event descriptions, the identity tag written by
``tools.booking``.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from salon_booking.config import settings
from salon_booking.integrations.calendar import CalendarBackend
from salon_booking.integrations.calls import CollaboratorError, call_collaborator
from salon_booking.integrations.store import BookingStore
from salon_booking.logging_context import get_customer_logger
from salon_booking.schemas.booking_schema import (
    BookingResult,
    BookingStatus,
    CalendarEvent,
    FoundBooking,
)

logger = get_customer_logger(__name__)

SERVICE_LINE_PREFIX = "Service:"


def parse_service(description: str) -> str:
    """Pull the service label out of an event description."""
    for line in description.splitlines():
        if line.startswith(SERVICE_LINE_PREFIX):
            return line[len(SERVICE_LINE_PREFIX):].strip()
    return ""


def to_found_booking(event: CalendarEvent) -> FoundBooking:
    return FoundBooking(
        event_ref=event.id,
        start=event.start,
        service=parse_service(event.description),
    )


class CancellationOrchestrator:
    """Looks up and cancels bookings across the calendar and the store."""

    def __init__(
        self,
        calendar: CalendarBackend,
        store: BookingStore,
        tz: Optional[ZoneInfo] = None,
        timeout: float = settings.collaborators.timeout_sec,
    ) -> None:
        self.calendar = calendar
        self.store = store
        self.tz = tz or settings.business.tz
        self.timeout = timeout

    async def find_bookings(
        self, tax_id: str, now: Optional[datetime] = None
    ) -> list[FoundBooking]:
        """Future bookings tagged with ``tax_id``, earliest first.

        Lookup failures are logged and reported as nothing found.
        """
        now = now or datetime.now(self.tz)
        try:
            events = await call_collaborator(
                "list_events", self.calendar.list_events, now, timeout=self.timeout
            )
        except CollaboratorError:
            logger.exception("Booking lookup failed")
            return []

        matched = [e for e in events if e.description and tax_id in e.description]
        matched.sort(key=lambda e: e.start)
        logger.debug("%d bookings found for tax id", len(matched))
        return [to_found_booking(e) for e in matched]

    async def cancel(self, event_ref: str) -> BookingResult:
        """Delete the calendar event, then mark the durable record cancelled."""
        try:
            await call_collaborator(
                "delete_event", self.calendar.delete_event, event_ref, timeout=self.timeout
            )
        except CollaboratorError:
            logger.exception("Calendar delete failed for event %s", event_ref)
            return BookingResult(success=False, booking_ref=event_ref, message="Cancellation failed.")

        try:
            await call_collaborator(
                "update_booking_status",
                self.store.update_booking_status,
                event_ref,
                BookingStatus.CANCELLED,
                timeout=self.timeout,
            )
        except CollaboratorError:
            # Event is already gone; the record stays active until reconciled.
            logger.exception("Record status update failed for cancelled event %s", event_ref)

        logger.info("Booking cancelled: %s", event_ref)
        return BookingResult(success=True, booking_ref=event_ref, message="Booking cancelled.")
