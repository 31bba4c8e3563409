from salon_booking.integrations.calendar import (
    CalendarBackend,
    EventNotFoundError,
    GoogleCalendar,
    InMemoryCalendar,
)
from salon_booking.integrations.calls import CollaboratorError, call_collaborator
from salon_booking.integrations.store import (
    BookingStore,
    InMemoryBookingStore,
    RecordNotFoundError,
    SupabaseBookingStore,
)

__all__ = [
    "CalendarBackend",
    "GoogleCalendar",
    "InMemoryCalendar",
    "EventNotFoundError",
    "BookingStore",
    "InMemoryBookingStore",
    "SupabaseBookingStore",
    "RecordNotFoundError",
    "CollaboratorError",
    "call_collaborator",
    "build_collaborators",
]


def build_collaborators(config) -> tuple[CalendarBackend, BookingStore]:
    """Create the calendar and store backends selected by configuration."""
    if config.calendar.backend == "google":
        calendar: CalendarBackend = GoogleCalendar.from_files(
            config.calendar.calendar_id,
            config.business.timezone,
            credentials_file=config.calendar.credentials_file,
            oauth_token_file=config.calendar.oauth_token_file,
        )
    else:
        calendar = InMemoryCalendar()

    if config.store.backend == "supabase":
        store: BookingStore = SupabaseBookingStore.from_credentials(
            config.store.supabase_url, config.store.supabase_key, config.store.table
        )
    else:
        store = InMemoryBookingStore()
    return calendar, store
