"""Calendar provider abstractions and implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

import google.auth
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from pydantic import ValidationError

from fitpick_app.logging_config import get_logger, log_event
from logic.validation import CalendarQuery
from tools.observability import instrument_call


LOGGER = get_logger(__name__)
SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/{calendar_id}/events"


@dataclass
class CalendarEvent:
    """Minimal calendar event payload safe for logs."""

    title: str
    start_time: datetime
    end_time: Optional[datetime] = None
    description: str | None = None
    location: str | None = None
    is_all_day: bool = False
    is_sample: bool = False

    @property
    def display_text(self) -> str:
        """The description when it has content, else the title."""

        if self.description and self.description.strip():
            return self.description.strip()
        return self.title or "Event"

    def to_dict(self) -> dict:
        return {
            "title": self.display_text,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "location": self.location,
            "is_all_day": self.is_all_day,
            "is_sample": self.is_sample,
        }


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class CalendarProvider(ABC):
    """Abstract calendar provider interface."""

    @abstractmethod
    def get_events(
        self, user_id: str, start: datetime, end: datetime, max_results: int = 50
    ) -> List[CalendarEvent]:
        """Fetch events starting between ``start`` and ``end``, ordered by start time."""


class GoogleCalendarProvider(CalendarProvider):
    """Google Calendar REST provider.

    Uses the signed-in user's OAuth access token when one is supplied,
    otherwise Google application default credentials (or a credentials file).
    """

    def __init__(
        self,
        access_token: str | None = None,
        credentials_path: str | None = None,
        calendar_id: str | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self.access_token = access_token
        self.credentials_path = credentials_path
        self.calendar_id = calendar_id or "primary"
        self.timeout_seconds = timeout_seconds

    def _bearer_token(self) -> str:
        if self.access_token:
            return self.access_token
        if self.credentials_path:
            credentials, _ = google.auth.load_credentials_from_file(
                self.credentials_path, scopes=SCOPES
            )
        else:
            credentials, _ = google.auth.default(scopes=SCOPES)

        if not credentials.valid:
            credentials.refresh(Request())

        return credentials.token

    def _parse_datetime(self, raw: str | None) -> datetime:
        if not raw:
            raise ValueError("Missing datetime value from calendar event")
        if len(raw) == 10:
            return datetime.combine(date.fromisoformat(raw), datetime.min.time(), tzinfo=timezone.utc)
        return _aware(datetime.fromisoformat(raw.replace("Z", "+00:00")))

    def _coerce_event(self, payload: dict) -> CalendarEvent:
        start_info = payload.get("start", {})
        end_info = payload.get("end", {})
        is_all_day = "date" in start_info and "dateTime" not in start_info
        start_raw = start_info.get("dateTime") or start_info.get("date")
        end_raw = end_info.get("dateTime") or end_info.get("date")
        return CalendarEvent(
            title=payload.get("summary") or "Event",
            start_time=self._parse_datetime(start_raw),
            end_time=self._parse_datetime(end_raw) if end_raw else None,
            description=payload.get("description"),
            location=payload.get("location"),
            is_all_day=is_all_day,
        )

    @instrument_call("google_calendar_events")
    def get_events(
        self, user_id: str, start: datetime, end: datetime, max_results: int = 50
    ) -> List[CalendarEvent]:
        try:
            CalendarQuery(
                user_id=user_id,
                start_date=start.date(),
                end_date=end.date(),
                max_results=max_results,
            )
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc

        try:
            token = self._bearer_token()
        except (GoogleAuthError, OSError) as exc:
            log_event(LOGGER, logging.ERROR, "calendar_credentials_unavailable", error=str(exc))
            return []

        params = {
            "timeMin": _aware(start).isoformat(),
            "timeMax": _aware(end).isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": max_results,
        }
        headers = {"Authorization": f"Bearer {token}"}
        url = EVENTS_URL.format(calendar_id=self.calendar_id)

        try:
            response = requests.get(url, headers=headers, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout:
            log_event(LOGGER, logging.ERROR, "calendar_request_timeout")
            return []
        except (requests.RequestException, ValueError) as exc:
            log_event(LOGGER, logging.ERROR, "calendar_request_failed", error=str(exc))
            return []

        events: List[CalendarEvent] = []
        for item in payload.get("items", []):
            try:
                events.append(self._coerce_event(item))
            except ValueError as exc:
                log_event(LOGGER, logging.WARNING, "calendar_event_skipped", error=str(exc))
        return events


class MockCalendarProvider(CalendarProvider):
    """Offline deterministic calendar provider for tests."""

    def __init__(self, events: List[CalendarEvent] | None = None) -> None:
        self._events = events or []

    def get_events(
        self, user_id: str, start: datetime, end: datetime, max_results: int = 50
    ) -> List[CalendarEvent]:
        window = [
            event
            for event in self._events
            if _aware(start) <= _aware(event.start_time) <= _aware(end)
        ]
        window.sort(key=lambda event: _aware(event.start_time))
        return window[:max_results]


class StubCalendarProvider(CalendarProvider):
    """Sample events shown while no calendar account is connected.

    Every event is flagged ``is_sample`` so it is only ever displayed, never
    used for reminders or wardrobe gap checks.
    """

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now

    def _samples(self) -> List[CalendarEvent]:
        now = _aware(self._now or datetime.now(timezone.utc))
        samples = [
            ("Team meeting — Planning", now + timedelta(hours=3)),
            ("Dinner with friends — Casual", now + timedelta(hours=6)),
            ("Dinner at 8 PM — Formal", now + timedelta(days=1)),
        ]
        return [CalendarEvent(title=title, start_time=start, is_sample=True) for title, start in samples]

    def get_events(
        self, user_id: str, start: datetime, end: datetime, max_results: int = 50
    ) -> List[CalendarEvent]:
        return MockCalendarProvider(self._samples()).get_events(user_id, start, end, max_results)


class FallbackCalendarProvider(CalendarProvider):
    """Ask the preferred provider first; use the secondary when it returns nothing."""

    def __init__(self, primary: CalendarProvider, secondary: CalendarProvider) -> None:
        self.primary = primary
        self.secondary = secondary

    def get_events(
        self, user_id: str, start: datetime, end: datetime, max_results: int = 50
    ) -> List[CalendarEvent]:
        events = self.primary.get_events(user_id, start, end, max_results)
        if events:
            return events
        log_event(
            LOGGER,
            logging.INFO,
            "calendar_fallback_used",
            provider=type(self.secondary).__name__,
        )
        return self.secondary.get_events(user_id, start, end, max_results)


__all__ = [
    "CalendarEvent",
    "CalendarProvider",
    "FallbackCalendarProvider",
    "GoogleCalendarProvider",
    "MockCalendarProvider",
    "StubCalendarProvider",
]
