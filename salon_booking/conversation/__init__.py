from salon_booking.conversation.session_store import SessionStore
from salon_booking.conversation.state_machine import (
    ConversationStateMachine,
    InvalidTransitionError,
    TransitionTrigger,
)

__all__ = [
    "ConversationStateMachine",
    "TransitionTrigger",
    "InvalidTransitionError",
    "SessionStore",
]
