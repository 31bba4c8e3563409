"""Shared test fixtures and collaborator doubles."""

import time
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from salon_booking.conversation.session_store import SessionStore
from salon_booking.conversation.state_machine import ConversationStateMachine
from salon_booking.integrations.calendar import InMemoryCalendar
from salon_booking.integrations.store import InMemoryBookingStore

TZ = ZoneInfo("America/Sao_Paulo")
# Wednesday morning; "today" for every test that uses the fixed clock
FIXED_NOW = datetime(2030, 5, 15, 10, 30, tzinfo=TZ)
TODAY = "15/05/2030"
TOMORROW = "16/05/2030"
YESTERDAY = "14/05/2030"
TAX_ID = "12345678901"


class FailingCalendar(InMemoryCalendar):
    """In-memory calendar whose selected operations raise."""

    def __init__(self, fail_on: set[str]) -> None:
        super().__init__()
        self.fail_on = fail_on

    def list_events(self, time_min, time_max=None):
        if "list" in self.fail_on:
            raise ConnectionError("calendar unreachable")
        return super().list_events(time_min, time_max)

    def insert_event(self, start, end, summary, description):
        if "insert" in self.fail_on:
            raise ConnectionError("calendar unreachable")
        return super().insert_event(start, end, summary, description)

    def delete_event(self, event_ref):
        if "delete" in self.fail_on:
            raise ConnectionError("calendar unreachable")
        super().delete_event(event_ref)


class SlowCalendar(InMemoryCalendar):
    """Calendar that blocks longer than any test timeout."""

    delay = 0.5

    def list_events(self, time_min, time_max=None):
        time.sleep(self.delay)
        return super().list_events(time_min, time_max)

    def insert_event(self, start, end, summary, description):
        time.sleep(self.delay)
        return super().insert_event(start, end, summary, description)


class FailingStore(InMemoryBookingStore):
    """Record store whose writes always raise."""

    def insert_booking(self, record):
        raise ConnectionError("store unreachable")

    def update_booking_status(self, event_ref, status):
        raise ConnectionError("store unreachable")


@pytest.fixture
def calendar():
    return InMemoryCalendar()


@pytest.fixture
def store():
    return InMemoryBookingStore()


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def machine(calendar, store, sessions):
    return ConversationStateMachine(
        calendar, store, sessions=sessions, clock=lambda: FIXED_NOW, tz=TZ
    )


@pytest.fixture
def chat(machine):
    """Send several messages from one customer, returning every reply."""

    async def _chat(customer_id: str, *messages: str) -> list[str]:
        return [await machine.handle_message(customer_id, m) for m in messages]

    return _chat
