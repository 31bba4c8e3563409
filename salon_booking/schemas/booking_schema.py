"""Booking, calendar event, and orchestrator result models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class BookingRecord(BaseModel):
    """Durable row mirroring a calendar booking."""
    name: str
    tax_id: str
    service: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    event_ref: str
    status: BookingStatus = BookingStatus.ACTIVE


class CalendarEvent(BaseModel):
    """Event as returned by the calendar collaborator."""
    id: str
    start: datetime
    end: datetime
    summary: str = ""
    description: str = ""


class FoundBooking(BaseModel):
    """A customer's future booking, recovered from the calendar."""
    event_ref: str
    start: datetime
    service: str


class BookingResult(BaseModel):
    """Outcome of a booking or cancellation attempt."""
    success: bool
    booking_ref: Optional[str] = None
    message: str = ""
    slot_taken: bool = False  # slot stopped being free before the insert
