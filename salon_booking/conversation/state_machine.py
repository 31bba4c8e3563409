"""
Finite state machine driving the booking conversation.

Each inbound message is one turn: the customer's session is loaded,
the handler for its current stage validates the text, the session
moves along an explicitly declared transition, and exactly one reply
is returned. Invalid input re-prompts and leaves the stage unchanged.
Terminal outcomes delete the session so the next message starts over.

Usage:
    machine = ConversationStateMachine(calendar, store)
    reply = await machine.handle_message("5511999990000", "Maria")
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

from salon_booking.config import settings
from salon_booking.conversation.session_store import SessionStore
from salon_booking.integrations.calendar import CalendarBackend
from salon_booking.integrations.store import BookingStore
from salon_booking.logging_context import get_customer_logger, set_customer_id
from salon_booking.prompts import replies
from salon_booking.schemas.session_schema import Session, Stage
from salon_booking.tools.availability import check_availability
from salon_booking.tools.booking import BookingOrchestrator
from salon_booking.tools.cancellation import CancellationOrchestrator
from salon_booking.tools.services import match_service
from salon_booking.utils import is_valid_tax_id, parse_date, parse_time

logger = get_customer_logger(__name__)

CONFIRM_WORDS = frozenset({"yes", "sim"})
MENU_BOOK = "1"
MENU_CANCEL = "2"


class TransitionTrigger(str, Enum):
    """Events that move a session to its next stage."""
    NAME_RECEIVED = "name_received"
    TAX_ID_ACCEPTED = "tax_id_accepted"
    BOOK_SELECTED = "book_selected"
    CANCEL_SELECTED = "cancel_selected"
    NO_BOOKINGS_FOUND = "no_bookings_found"
    SERVICE_SELECTED = "service_selected"
    DATE_ACCEPTED = "date_accepted"
    TIME_SELECTED = "time_selected"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_DECLINED = "booking_declined"
    BOOKING_SELECTED = "booking_selected"
    CANCELLATION_CONFIRMED = "cancellation_confirmed"
    CANCELLATION_DECLINED = "cancellation_declined"


@dataclass(frozen=True)
class Transition:
    """A single valid stage transition."""
    from_stage: Stage
    to_stage: Stage
    trigger: TransitionTrigger


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current stage."""


Handler = Callable[[Session, str], Awaitable[str]]


class ConversationStateMachine:
    """
    Stage-transition function over per-customer sessions.

    Turns for the same customer are serialised through the session
    store's per-customer turn lock; different customers are independent.
    """

    TRANSITIONS: list[Transition] = [
        # --- Identification ---
        Transition(Stage.AWAITING_NAME, Stage.AWAITING_TAX_ID, TransitionTrigger.NAME_RECEIVED),
        Transition(Stage.AWAITING_TAX_ID, Stage.MAIN_MENU, TransitionTrigger.TAX_ID_ACCEPTED),

        # --- Menu routing ---
        Transition(Stage.MAIN_MENU, Stage.CHOOSE_SERVICE, TransitionTrigger.BOOK_SELECTED),
        Transition(Stage.MAIN_MENU, Stage.LIST_BOOKINGS, TransitionTrigger.CANCEL_SELECTED),
        Transition(Stage.MAIN_MENU, Stage.CLOSED, TransitionTrigger.NO_BOOKINGS_FOUND),

        # --- Booking flow ---
        Transition(Stage.CHOOSE_SERVICE, Stage.CHOOSE_DATE, TransitionTrigger.SERVICE_SELECTED),
        Transition(Stage.CHOOSE_DATE, Stage.CHOOSE_TIME, TransitionTrigger.DATE_ACCEPTED),
        Transition(Stage.CHOOSE_TIME, Stage.CONFIRM_BOOKING, TransitionTrigger.TIME_SELECTED),
        Transition(Stage.CONFIRM_BOOKING, Stage.CLOSED, TransitionTrigger.BOOKING_CONFIRMED),
        Transition(Stage.CONFIRM_BOOKING, Stage.CLOSED, TransitionTrigger.BOOKING_DECLINED),

        # --- Cancellation flow ---
        Transition(Stage.LIST_BOOKINGS, Stage.CONFIRM_CANCELLATION, TransitionTrigger.BOOKING_SELECTED),
        Transition(Stage.CONFIRM_CANCELLATION, Stage.CLOSED, TransitionTrigger.CANCELLATION_CONFIRMED),
        Transition(Stage.CONFIRM_CANCELLATION, Stage.CLOSED, TransitionTrigger.CANCELLATION_DECLINED),
    ]

    def __init__(
        self,
        calendar: CalendarBackend,
        store: BookingStore,
        sessions: Optional[SessionStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[ZoneInfo] = None,
    ) -> None:
        self.tz = tz or settings.business.tz
        self.calendar = calendar
        self.sessions = sessions if sessions is not None else SessionStore()
        self.booking = BookingOrchestrator(calendar, store, tz=self.tz)
        self.cancellation = CancellationOrchestrator(calendar, store, tz=self.tz)
        self._clock = clock or (lambda: datetime.now(self.tz))

        self._handlers: dict[Stage, Handler] = {
            Stage.AWAITING_NAME: self._on_name,
            Stage.AWAITING_TAX_ID: self._on_tax_id,
            Stage.MAIN_MENU: self._on_main_menu,
            Stage.CHOOSE_SERVICE: self._on_service,
            Stage.CHOOSE_DATE: self._on_date,
            Stage.CHOOSE_TIME: self._on_time,
            Stage.CONFIRM_BOOKING: self._on_confirm_booking,
            Stage.LIST_BOOKINGS: self._on_booking_choice,
            Stage.CONFIRM_CANCELLATION: self._on_confirm_cancellation,
        }
        unhandled = set(Stage) - {Stage.CLOSED} - set(self._handlers)
        if unhandled:
            raise RuntimeError(f"No handler for stages: {sorted(s.value for s in unhandled)}")

    # ------------------------------------------------------------------ #
    # Turn processing
    # ------------------------------------------------------------------ #

    async def handle_message(self, customer_id: str, text: str) -> str:
        """Process one inbound message and return the reply text."""
        set_customer_id(customer_id)
        self.sessions.purge_idle()
        async with self.sessions.turn(customer_id):
            return await self._process(customer_id, text.strip())

    async def _process(self, customer_id: str, text: str) -> str:
        session = self.sessions.get(customer_id)
        if session is None:
            self.sessions.put(customer_id, Session())
            logger.info("New session started")
            return replies.ASK_NAME

        reply = await self._handlers[session.stage](session, text)

        if session.stage == Stage.CLOSED:
            self.sessions.delete(customer_id)
        else:
            self.sessions.put(customer_id, session)
        return reply

    def _advance(self, session: Session, trigger: TransitionTrigger) -> Stage:
        """
        Move ``session`` along a declared transition.

        Raises:
            InvalidTransitionError: If no transition matches.
        """
        for t in self.TRANSITIONS:
            if t.from_stage == session.stage and t.trigger == trigger:
                old_stage = session.stage
                session.stage = t.to_stage
                session.invalid_inputs = 0
                logger.debug(
                    "Stage transition: %s -> %s (trigger: %s)",
                    old_stage.value, session.stage.value, trigger.value,
                )
                return session.stage

        valid = [t.trigger.value for t in self.TRANSITIONS if t.from_stage == session.stage]
        raise InvalidTransitionError(
            f"No valid transition from '{session.stage.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def _reprompt(self, session: Session, reply: str) -> str:
        session.invalid_inputs += 1
        logger.debug(
            "Invalid input at %s (attempt %d)", session.stage.value, session.invalid_inputs
        )
        return reply

    def today(self) -> date:
        return self._clock().astimezone(self.tz).date()

    # ------------------------------------------------------------------ #
    # Identification
    # ------------------------------------------------------------------ #

    async def _on_name(self, session: Session, text: str) -> str:
        if not text:
            return self._reprompt(session, replies.ASK_NAME_AGAIN)
        session.name = text
        self._advance(session, TransitionTrigger.NAME_RECEIVED)
        return replies.ASK_TAX_ID

    async def _on_tax_id(self, session: Session, text: str) -> str:
        if not is_valid_tax_id(text):
            return self._reprompt(session, replies.INVALID_TAX_ID)
        session.tax_id = text
        self._advance(session, TransitionTrigger.TAX_ID_ACCEPTED)
        return replies.main_menu(session.name or "")

    async def _on_main_menu(self, session: Session, text: str) -> str:
        if text == MENU_BOOK:
            self._advance(session, TransitionTrigger.BOOK_SELECTED)
            return replies.service_menu()

        if text == MENU_CANCEL:
            found = await self.cancellation.find_bookings(session.tax_id or "", now=self._clock())
            if not found:
                self._advance(session, TransitionTrigger.NO_BOOKINGS_FOUND)
                return replies.NO_BOOKINGS
            session.bookings_found = found
            self._advance(session, TransitionTrigger.CANCEL_SELECTED)
            return replies.bookings_list(found, self.tz)

        return self._reprompt(session, replies.invalid_menu_choice(session.name or ""))

    # ------------------------------------------------------------------ #
    # Booking flow
    # ------------------------------------------------------------------ #

    async def _on_service(self, session: Session, text: str) -> str:
        service = match_service(text)
        if service is None:
            return self._reprompt(session, replies.INVALID_SERVICE)
        session.service = service
        self._advance(session, TransitionTrigger.SERVICE_SELECTED)
        return replies.ASK_DATE

    async def _on_date(self, session: Session, text: str) -> str:
        day = parse_date(text)
        if day is None:
            return self._reprompt(session, replies.INVALID_DATE)
        if day < self.today():
            return self._reprompt(session, replies.PAST_DATE)

        slots = await check_availability(self.calendar, day, now=self._clock(), tz=self.tz)
        if not slots:
            return self._reprompt(session, replies.NO_SLOTS)

        session.date = day
        session.available_slots = slots
        self._advance(session, TransitionTrigger.DATE_ACCEPTED)
        return replies.available_times(day, slots)

    async def _on_time(self, session: Session, text: str) -> str:
        slot_time = parse_time(text)
        if slot_time is None:
            return self._reprompt(session, replies.INVALID_TIME)
        if slot_time not in session.available_slots:
            return self._reprompt(session, replies.TIME_NOT_AVAILABLE)
        session.time = slot_time
        self._advance(session, TransitionTrigger.TIME_SELECTED)
        return replies.booking_summary(session.name, session.service, session.date, slot_time)

    async def _on_confirm_booking(self, session: Session, text: str) -> str:
        if text.lower() not in CONFIRM_WORDS:
            self._advance(session, TransitionTrigger.BOOKING_DECLINED)
            return replies.BOOKING_ABORTED

        result = await self.booking.book(
            session.name, session.tax_id, session.service, session.date, session.time,
            now=self._clock(),
        )
        self._advance(session, TransitionTrigger.BOOKING_CONFIRMED)
        if result.slot_taken:
            return replies.SLOT_TAKEN
        if not result.success:
            return replies.BOOKING_FAILED
        return replies.booking_confirmed(session.name, session.service, session.date, session.time)

    # ------------------------------------------------------------------ #
    # Cancellation flow
    # ------------------------------------------------------------------ #

    async def _on_booking_choice(self, session: Session, text: str) -> str:
        index = int(text) - 1 if text.isdecimal() else -1
        if not 0 <= index < len(session.bookings_found):
            return self._reprompt(session, replies.INVALID_BOOKING_CHOICE)
        chosen = session.bookings_found[index]
        session.selected_booking_ref = chosen.event_ref
        self._advance(session, TransitionTrigger.BOOKING_SELECTED)
        return replies.cancellation_summary(chosen, self.tz)

    async def _on_confirm_cancellation(self, session: Session, text: str) -> str:
        if text.lower() not in CONFIRM_WORDS:
            self._advance(session, TransitionTrigger.CANCELLATION_DECLINED)
            return replies.CANCELLATION_ABORTED

        result = await self.cancellation.cancel(session.selected_booking_ref)
        self._advance(session, TransitionTrigger.CANCELLATION_CONFIRMED)
        return replies.CANCELLATION_DONE if result.success else replies.CANCELLATION_FAILED
