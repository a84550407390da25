"""Calendar agent that finds the events outfit suggestions are built around."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone
from typing import List, Optional

from fitpick_app.logging_config import get_logger, log_event, operation_context
from tools.calendar_provider import CalendarEvent, CalendarProvider

LOGGER = get_logger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    current = now or datetime.now(timezone.utc)
    return current if current.tzinfo else current.replace(tzinfo=timezone.utc)


def _sanitize_title(title: str) -> str:
    return title[:20] + ("..." if len(title) > 20 else "")


class CalendarAgent:
    """Reads upcoming events for the home screen and reminders."""

    def __init__(self, provider: CalendarProvider) -> None:
        self.provider = provider

    def next_event(
        self, user_id: str, now: Optional[datetime] = None, horizon_days: int = 30
    ) -> Optional[CalendarEvent]:
        """Return the earliest real event starting at or after ``now``.

        Sample events from a preview calendar are skipped.
        """

        with operation_context("agent:calendar.next_event") as correlation_id:
            start = _now(now)
            events = self.provider.get_events(
                user_id, start, start + timedelta(days=horizon_days), max_results=10
            )
            upcoming = sorted(
                (
                    event
                    for event in events
                    if not event.is_sample and _now(event.start_time) >= start
                ),
                key=lambda event: _now(event.start_time),
            )
            found = upcoming[0] if upcoming else None
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="calendar",
                method="next_event",
                correlation_id=correlation_id,
                found=found is not None,
                title=_sanitize_title(found.display_text) if found else None,
            )
            return found

    def upcoming_events(
        self, user_id: str, days_ahead: int = 0, now: Optional[datetime] = None
    ) -> List[CalendarEvent]:
        """Events from ``now`` until the start of day ``days_ahead + 1``."""

        if days_ahead < 0:
            raise ValueError("days_ahead cannot be negative")
        with operation_context("agent:calendar.upcoming_events") as correlation_id:
            start = _now(now)
            day_start = datetime.combine(start.date(), time.min, tzinfo=start.tzinfo)
            end = day_start + timedelta(days=days_ahead + 1)
            events = self.provider.get_events(user_id, start, end)
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="calendar",
                method="upcoming_events",
                correlation_id=correlation_id,
                event_count=len(events),
                days_ahead=days_ahead,
            )
            return events


__all__ = ["CalendarAgent"]
