"""Per-customer conversation state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from salon_booking.schemas.booking_schema import FoundBooking


class Stage(str, Enum):
    """Position of a session in the conversation.

    ``CLOSED`` marks a terminal outcome; a closed session is deleted
    from the store instead of being saved.
    """
    AWAITING_NAME = "awaiting_name"
    AWAITING_TAX_ID = "awaiting_tax_id"
    MAIN_MENU = "main_menu"
    CHOOSE_SERVICE = "choose_service"
    CHOOSE_DATE = "choose_date"
    CHOOSE_TIME = "choose_time"
    CONFIRM_BOOKING = "confirm_booking"
    LIST_BOOKINGS = "list_bookings"
    CONFIRM_CANCELLATION = "confirm_cancellation"
    CLOSED = "closed"


@dataclass
class Session:
    """
    One customer's in-progress conversation.

    Created on the first inbound message from an unseen identifier and
    mutated only by the conversation state machine.
    """
    stage: Stage = Stage.AWAITING_NAME
    name: Optional[str] = None
    tax_id: Optional[str] = None
    service: Optional[str] = None
    date: Optional[date] = None
    time: Optional[str] = None
    available_slots: list[str] = field(default_factory=list)
    bookings_found: list[FoundBooking] = field(default_factory=list)
    selected_booking_ref: Optional[str] = None
    invalid_inputs: int = 0
