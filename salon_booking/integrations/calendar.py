"""
Calendar collaborator: the shared, time-ordered event store.

``InMemoryCalendar`` backs tests and the console channel.
``GoogleCalendar`` talks to Google Calendar v3 through
google-api-python-client. Both are blocking; callers run them off the
event loop.
"""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime
from typing import Optional, Protocol

from salon_booking.schemas.booking_schema import CalendarEvent

logger = logging.getLogger(__name__)

_SCOPES = ["https://www.googleapis.com/auth/calendar"]


class CalendarBackend(Protocol):
    def list_events(
        self, time_min: datetime, time_max: Optional[datetime] = None
    ) -> list[CalendarEvent]:
        ...

    def insert_event(
        self, start: datetime, end: datetime, summary: str, description: str
    ) -> str:
        ...

    def delete_event(self, event_ref: str) -> None:
        ...


class EventNotFoundError(LookupError):
    """Raised when deleting an event the calendar does not hold."""


class InMemoryCalendar:
    """Process-local calendar keyed by event id."""

    def __init__(self) -> None:
        self.events: dict[str, CalendarEvent] = {}

    def list_events(
        self, time_min: datetime, time_max: Optional[datetime] = None
    ) -> list[CalendarEvent]:
        # Same overlap semantics as the Google API: end > timeMin, start < timeMax
        found = [
            e
            for e in self.events.values()
            if e.end > time_min and (time_max is None or e.start < time_max)
        ]
        return sorted(found, key=lambda e: e.start)

    def insert_event(
        self, start: datetime, end: datetime, summary: str, description: str
    ) -> str:
        event_id = uuid.uuid4().hex
        self.events[event_id] = CalendarEvent(
            id=event_id, start=start, end=end, summary=summary, description=description
        )
        logger.debug("Calendar event inserted: %s at %s", event_id, start.isoformat())
        return event_id

    def delete_event(self, event_ref: str) -> None:
        if event_ref not in self.events:
            raise EventNotFoundError(f"Event {event_ref} not found")
        del self.events[event_ref]
        logger.debug("Calendar event deleted: %s", event_ref)


class GoogleCalendar:
    """Google Calendar v3 client scoped to one shared calendar id."""

    def __init__(self, service, calendar_id: str, timezone: str) -> None:
        self._service = service
        self.calendar_id = calendar_id
        self.timezone = timezone

    @classmethod
    def from_files(
        cls,
        calendar_id: str,
        timezone: str,
        credentials_file: str = "",
        oauth_token_file: str = "",
    ) -> "GoogleCalendar":
        """Build a client from a user OAuth token or a service-account file."""
        from google.oauth2 import service_account
        from google.oauth2.credentials import Credentials
        from googleapiclient.discovery import build

        if oauth_token_file and os.path.exists(oauth_token_file):
            creds = Credentials.from_authorized_user_file(oauth_token_file, scopes=_SCOPES)
        elif credentials_file and os.path.exists(credentials_file):
            creds = service_account.Credentials.from_service_account_file(
                credentials_file, scopes=_SCOPES
            )
        else:
            raise ValueError(
                "Google calendar needs GOOGLE_OAUTH_TOKEN or GOOGLE_APPLICATION_CREDENTIALS"
            )
        service = build("calendar", "v3", credentials=creds, cache_discovery=False)
        return cls(service, calendar_id, timezone)

    def list_events(
        self, time_min: datetime, time_max: Optional[datetime] = None
    ) -> list[CalendarEvent]:
        params = {
            "calendarId": self.calendar_id,
            "timeMin": time_min.isoformat(),
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if time_max is not None:
            params["timeMax"] = time_max.isoformat()

        events: list[CalendarEvent] = []
        page_token = None
        while True:
            if page_token:
                params["pageToken"] = page_token
            resp = self._service.events().list(**params).execute()
            for item in resp.get("items", []):
                start = item.get("start", {}).get("dateTime")
                end = item.get("end", {}).get("dateTime")
                if not start or not end:
                    # All-day events carry no slot time
                    continue
                events.append(
                    CalendarEvent(
                        id=item["id"],
                        start=datetime.fromisoformat(start),
                        end=datetime.fromisoformat(end),
                        summary=item.get("summary", ""),
                        description=item.get("description", ""),
                    )
                )
            page_token = resp.get("nextPageToken")
            if not page_token:
                return events

    def insert_event(
        self, start: datetime, end: datetime, summary: str, description: str
    ) -> str:
        body = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": start.isoformat(), "timeZone": self.timezone},
            "end": {"dateTime": end.isoformat(), "timeZone": self.timezone},
        }
        created = (
            self._service.events()
            .insert(calendarId=self.calendar_id, body=body)
            .execute()
        )
        return created["id"]

    def delete_event(self, event_ref: str) -> None:
        self._service.events().delete(
            calendarId=self.calendar_id, eventId=event_ref
        ).execute()
