"""Stylist agent: checks the closet against an upcoming event.

The agent maps the event to the items it calls for, counts what the owner
already has, and either offers a try-on or builds shopping suggestions for the
missing pieces. Shopping suggestions come from Gemini when available and fall
back to a plain search link otherwise.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Optional, Tuple

from fitpick_app.logging_config import get_logger, log_event, operation_context
from logic.gap_detection import (
    GapMessage,
    detect_gap,
    evaluate_try_on,
    fallback_picks,
    parse_suggestions,
    required_items,
    suggestions_search_url,
)
from logic.prompts import shopping_suggestions_prompt
from tools.social_store import SQLiteSocialStore
from tools.wardrobe_store import WardrobeStore
from tools.weather_provider import WeatherProvider, weather_snippet

LOGGER = get_logger(__name__)


class StylistAgent:
    """Gap detection and shopping suggestions for calendar events."""

    def __init__(
        self,
        wardrobe_store: WardrobeStore,
        social_store: SQLiteSocialStore,
        weather_provider: Optional[WeatherProvider] = None,
        generator=None,
    ) -> None:
        self.wardrobe_store = wardrobe_store
        self.social_store = social_store
        self.weather_provider = weather_provider
        self.generator = generator

    def _gender(self, user_email: str) -> str:
        user = self.social_store.get_user(user_email)
        return user.gender if user else "Unspecified"

    def _measurements(self, user_email: str) -> Dict[str, float]:
        user = self.social_store.get_user(user_email)
        return dict(user.measurements) if user else {}

    def closet_counts(self, user_email: str) -> Dict[str, int]:
        """Subcategory counts, plus category totals for names no subcategory uses."""

        counts = dict(self.wardrobe_store.subcategory_counts(user_email))
        for category, total in self.wardrobe_store.category_counts(user_email).items():
            counts.setdefault(category, total)
        return counts

    def _forecast_snippet(
        self, event_date: Optional[date], coordinates: Optional[Tuple[float, float]]
    ) -> Optional[str]:
        if self.weather_provider is None or event_date is None or coordinates is None:
            return None
        return weather_snippet(self.weather_provider.forecast(coordinates[0], coordinates[1], event_date))

    def shopping_picks(
        self,
        user_email: str,
        items,
        event: str,
        locality: Optional[str] = None,
    ) -> Tuple[str, list]:
        """Return ``(search_url, suggestions)`` for the missing items."""

        if self.generator is not None:
            prompt = shopping_suggestions_prompt(
                items,
                event,
                locality,
                self._gender(user_email),
                self._measurements(user_email),
            )
            try:
                suggestions = parse_suggestions(self.generator.generate_text(prompt))
            except Exception as exc:  # model failures fall back to a plain search
                log_event(LOGGER, logging.WARNING, "shopping_picks_failed", error=str(exc))
                suggestions = []
            if suggestions:
                return suggestions_search_url(suggestions), suggestions
        return fallback_picks(items, locality)

    def handle_calendar_event(
        self,
        user_email: str,
        event: str,
        event_date: Optional[date] = None,
        coordinates: Optional[Tuple[float, float]] = None,
        locality: Optional[str] = None,
    ) -> GapMessage:
        with operation_context("agent:stylist.handle_calendar_event") as correlation_id:
            required = required_items(event, self._gender(user_email))
            counts = self.closet_counts(user_email)
            message = detect_gap(event, required, counts, self._forecast_snippet(event_date, coordinates))
            if not message.use_try_on:
                url, suggestions = self.shopping_picks(user_email, required, event, locality)
                message.external_url = url
                message.suggestions = suggestions

            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="stylist",
                method="handle_calendar_event",
                correlation_id=correlation_id,
                required=required,
                gap=not message.use_try_on,
                suggestion_count=len(message.suggestions),
            )
            return message

    def evaluate_try_on(
        self, user_email: str, event: Optional[str], locality: Optional[str] = None
    ) -> Tuple[bool, Optional[GapMessage]]:
        counts = self.wardrobe_store.subcategory_counts(user_email)
        available, message = evaluate_try_on(event, self._gender(user_email), counts, locality)
        log_event(
            LOGGER,
            logging.INFO,
            "try_on_evaluated",
            available=available,
            closet_size=sum(counts.values()),
        )
        return available, message


__all__ = ["StylistAgent"]
