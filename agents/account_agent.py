"""Account sync, device registration and wardrobe reminder notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from agents.calendar_agent import CalendarAgent
from agents.closet_agent import ClosetAgent
from fitpick_app.logging_config import get_logger, log_event, operation_context
from models.clothing_item import normalize_email, utcnow
from models.user import User
from tools.social_store import SQLiteSocialStore

LOGGER = get_logger(__name__)

REMINDER_TOPIC = "wardrobe_reminders"


@dataclass
class Reminder:
    email: str
    title: str
    body: str


class Notifier:
    """Push transport seam. Delivery itself lives outside this service."""

    def subscribe(self, token: str, topic: str) -> None:
        raise NotImplementedError

    def send(self, reminder: Reminder) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Records subscriptions and reminders and writes them to the log."""

    def __init__(self) -> None:
        self.subscriptions: List[Tuple[str, str]] = []
        self.sent: List[Reminder] = []

    def subscribe(self, token: str, topic: str) -> None:
        self.subscriptions.append((token, topic))
        log_event(LOGGER, logging.INFO, "topic_subscribed", topic=topic, fcm_token=token)

    def send(self, reminder: Reminder) -> None:
        self.sent.append(reminder)
        log_event(LOGGER, logging.INFO, "reminder_sent", email=reminder.email, title=reminder.title)


class AccountAgent:
    def __init__(self, social_store: SQLiteSocialStore, notifier: Optional[Notifier] = None) -> None:
        self.social_store = social_store
        self.notifier = notifier or LoggingNotifier()

    def sync_user(self, email: str, now: Optional[datetime] = None) -> User:
        """Create or refresh the account for a freshly signed-in email."""

        with operation_context("agent:account.sync_user") as correlation_id:
            user = self.social_store.upsert_user(normalize_email(email), last_active=now or utcnow())
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="account",
                method="sync_user",
                correlation_id=correlation_id,
                has_username=bool(user.username),
            )
            return user

    def save_profile(
        self,
        email: str,
        username: Optional[str] = None,
        gender: Optional[str] = None,
        measurements: Optional[Mapping[str, Any]] = None,
        bio: Optional[str] = None,
    ) -> User:
        fields = {
            key: value
            for key, value in (("username", username), ("gender", gender), ("bio", bio))
            if value is not None
        }
        user = self.social_store.upsert_user(email, **fields)
        if measurements:
            self.social_store.update_measurements(user.email, measurements)
            user = self.social_store.get_user(user.email) or user
        return user

    def register_device(self, email: str, token: str) -> None:
        if not (token or "").strip():
            raise ValueError("A device token is required")
        self.social_store.set_fcm_token(email, token.strip())
        self.notifier.subscribe(token.strip(), REMINDER_TOPIC)


class WardrobeReminderService:
    """Nudges users about their next event, favouring recently added clothes."""

    def __init__(
        self, calendar_agent: CalendarAgent, closet_agent: ClosetAgent, notifier: Notifier
    ) -> None:
        self.calendar_agent = calendar_agent
        self.closet_agent = closet_agent
        self.notifier = notifier

    def run_reminder_check(
        self,
        email: str,
        now: Optional[datetime] = None,
        calendar_agent: Optional[CalendarAgent] = None,
    ) -> Optional[Reminder]:
        """Send a reminder for the next real event, if there is one.

        ``calendar_agent`` reads a specific user's calendar instead of the
        service default.
        """

        owner = normalize_email(email)
        event = (calendar_agent or self.calendar_agent).next_event(owner, now=now)
        if event is None:
            return None
        label = event.display_text

        uploaded, used = self.closet_agent.wardrobe_pulse(owner, last_days=7)
        if uploaded > 0 and used == 0:
            reminder = Reminder(
                email=owner,
                title="New Outfit Opportunity!",
                body=f"You have '{label}' coming up. Try those new items you recently added!",
            )
        else:
            reminder = Reminder(
                email=owner,
                title="Event Reminder",
                body=f"Don't forget to pick an outfit for '{label}' from your collection today!",
            )
        self.notifier.send(reminder)
        return reminder


__all__ = [
    "AccountAgent",
    "LoggingNotifier",
    "Notifier",
    "REMINDER_TOPIC",
    "Reminder",
    "WardrobeReminderService",
]
