"""
Durable booking record store.

Rows mirror calendar bookings and are never physically deleted;
cancellation flips ``status``. ``SupabaseBookingStore`` writes to a
Supabase table, ``InMemoryBookingStore`` backs tests and the console.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Protocol

from salon_booking.schemas.booking_schema import BookingRecord, BookingStatus

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    def insert_booking(self, record: BookingRecord) -> str:
        ...

    def update_booking_status(self, event_ref: str, status: BookingStatus) -> None:
        ...


class RecordNotFoundError(LookupError):
    """Raised when no durable record matches an event reference."""


class InMemoryBookingStore:
    def __init__(self) -> None:
        self.records: dict[str, BookingRecord] = {}

    def insert_booking(self, record: BookingRecord) -> str:
        record_id = uuid.uuid4().hex
        self.records[record_id] = record.model_copy()
        return record_id

    def update_booking_status(self, event_ref: str, status: BookingStatus) -> None:
        matched = [r for r in self.records.values() if r.event_ref == event_ref]
        if not matched:
            raise RecordNotFoundError(f"No booking record for event {event_ref}")
        for record in matched:
            record.status = status

    def get_by_event_ref(self, event_ref: str) -> Optional[BookingRecord]:
        for record in self.records.values():
            if record.event_ref == event_ref:
                return record
        return None


class SupabaseBookingStore:
    def __init__(self, client, table: str = "bookings") -> None:
        self.client = client
        self.table = table

    @classmethod
    def from_credentials(cls, url: str, key: str, table: str = "bookings") -> "SupabaseBookingStore":
        from supabase import create_client

        return cls(create_client(url, key), table)

    def insert_booking(self, record: BookingRecord) -> str:
        payload = record.model_dump(mode="json")
        response = self.client.table(self.table).insert(payload).execute()
        rows = response.data or []
        return str(rows[0].get("id", "")) if rows else ""

    def update_booking_status(self, event_ref: str, status: BookingStatus) -> None:
        response = (
            self.client.table(self.table)
            .update({"status": status.value})
            .eq("event_ref", event_ref)
            .execute()
        )
        if not response.data:
            raise RecordNotFoundError(f"No booking record for event {event_ref}")
