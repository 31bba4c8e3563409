"""
Booking creation: one calendar event plus a mirrored durable record.

The calendar event is the source of truth for availability. The slot
is checked again right before the insert, under a lock held per
(day, time), so two customers confirming the same slot cannot both get
it and a slot that has already started is never booked. When the
record write fails after the event was inserted, ``strict`` mode
deletes the event again and reports failure; ``lenient`` mode keeps
the event and reports success.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from salon_booking.config import settings
from salon_booking.integrations.calendar import CalendarBackend
from salon_booking.integrations.calls import CollaboratorError, call_collaborator
from salon_booking.integrations.store import BookingStore
from salon_booking.locks import KeyedLock
from salon_booking.logging_context import get_customer_logger
from salon_booking.schemas.booking_schema import BookingRecord, BookingResult, BookingStatus
from salon_booking.tools.availability import list_available_slots

logger = get_customer_logger(__name__)

SUMMARY_TEMPLATE = "Booking - {name}"
DESCRIPTION_TEMPLATE = "Customer: {name}\nTax ID: {tax_id}\nService: {service}"


def build_description(name: str, tax_id: str, service: str) -> str:
    """Event description carrying the customer's identity tag."""
    return DESCRIPTION_TEMPLATE.format(name=name, tax_id=tax_id, service=service)


class BookingOrchestrator:
    """Creates bookings across the calendar and the record store."""

    def __init__(
        self,
        calendar: CalendarBackend,
        store: BookingStore,
        tz: Optional[ZoneInfo] = None,
        slot_minutes: int = settings.business.slot_minutes,
        timeout: float = settings.collaborators.timeout_sec,
        consistency_mode: str = settings.collaborators.consistency_mode,
    ) -> None:
        self.calendar = calendar
        self.store = store
        self.tz = tz or settings.business.tz
        self.slot_minutes = slot_minutes
        self.timeout = timeout
        self.consistency_mode = consistency_mode
        self._slot_locks = KeyedLock()

    def slot_bounds(self, day: date, slot_time: str) -> tuple[datetime, datetime]:
        start = datetime.combine(day, time.fromisoformat(slot_time), tzinfo=self.tz)
        return start, start + timedelta(minutes=self.slot_minutes)

    async def book(
        self,
        name: str,
        tax_id: str,
        service: str,
        day: date,
        slot_time: str,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """
        Re-check the slot, insert the calendar event, then persist the record.

        Args:
            now: Current moment; defaults to the wall clock in the operating zone.

        Returns:
            BookingResult with ``booking_ref`` set to the event id on success,
            or ``slot_taken`` set when the slot is no longer free.
        """
        async with self._slot_locks.hold((day, slot_time)):
            try:
                free = await list_available_slots(
                    self.calendar, day, now=now, tz=self.tz, timeout=self.timeout
                )
            except CollaboratorError:
                logger.exception("Slot re-check failed for %s at %s", day.isoformat(), slot_time)
                return BookingResult(success=False, message="Calendar lookup failed.")
            if slot_time not in free:
                logger.info("Slot %s on %s is no longer free", slot_time, day.isoformat())
                return BookingResult(
                    success=False, slot_taken=True, message="Slot is no longer available."
                )
            return await self._insert(name, tax_id, service, day, slot_time)

    async def _insert(
        self, name: str, tax_id: str, service: str, day: date, slot_time: str
    ) -> BookingResult:
        start, end = self.slot_bounds(day, slot_time)
        try:
            event_ref = await call_collaborator(
                "insert_event",
                self.calendar.insert_event,
                start,
                end,
                SUMMARY_TEMPLATE.format(name=name),
                build_description(name, tax_id, service),
                timeout=self.timeout,
            )
        except CollaboratorError:
            logger.exception("Calendar insert failed for %s at %s", day.isoformat(), slot_time)
            return BookingResult(success=False, message="Calendar insert failed.")

        record = BookingRecord(
            name=name,
            tax_id=tax_id,
            service=service,
            date=day.isoformat(),
            time=slot_time,
            event_ref=event_ref,
            status=BookingStatus.ACTIVE,
        )
        try:
            record_id = await call_collaborator(
                "insert_booking", self.store.insert_booking, record, timeout=self.timeout
            )
        except CollaboratorError:
            logger.exception("Booking record write failed for event %s", event_ref)
            if self.consistency_mode == "strict":
                return await self._roll_back(event_ref)
            logger.warning("Keeping event %s without a durable record", event_ref)
        else:
            logger.info("Booking record saved with id %s", record_id)

        logger.info("Booking created: %s on %s at %s", event_ref, day.isoformat(), slot_time)
        return BookingResult(
            success=True,
            booking_ref=event_ref,
            message=f"{service} on {day.isoformat()} at {slot_time}.",
        )

    async def _roll_back(self, event_ref: str) -> BookingResult:
        """Delete an event whose durable record could not be written."""
        try:
            await call_collaborator(
                "delete_event", self.calendar.delete_event, event_ref, timeout=self.timeout
            )
        except CollaboratorError:
            logger.exception("Compensating delete failed; event %s is orphaned", event_ref)
        else:
            logger.info("Event %s rolled back after record write failure", event_ref)
        return BookingResult(success=False, message="Booking record could not be saved.")
