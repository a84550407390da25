"""FitPick app bootstrap."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from agents.account_agent import (
    AccountAgent,
    LoggingNotifier,
    Notifier,
    Reminder,
    WardrobeReminderService,
)
from agents.calendar_agent import CalendarAgent
from agents.closet_agent import ClosetAgent
from agents.social_agent import SocialAgent
from agents.stylist_agent import StylistAgent
from agents.try_on_agent import TryOnAgent
from agents.weather_agent import WeatherAgent
from fitpick_app.config import FitPickConfig
from fitpick_app.logging_config import configure_logging, get_logger, log_event, operation_context
from logic.briefing import briefing_for_hour, greeting_for_hour, time_of_day
from logic.measurements import assess_pose, estimate_body_measurements, format_measurements
from logic.prompts import garment_label_prompt
from models.taxonomy import ClothingCategory
from tools.calendar_provider import (
    CalendarProvider,
    FallbackCalendarProvider,
    GoogleCalendarProvider,
    StubCalendarProvider,
)
from tools.genai_client import GeminiClient, GeminiLabelClassifier
from tools.media_store import LocalMediaStore
from tools.news_provider import NewsProvider
from tools.social_store import SQLiteSocialStore
from tools.wardrobe_store import SQLiteWardrobeStore
from tools.weather_provider import OpenMeteoWeatherProvider, WeatherProvider

LOGGER = get_logger(__name__)


class FitPickApp:
    """Wires together stores, providers and agents."""

    def __init__(
        self,
        config: FitPickConfig | None = None,
        generator=None,
        classifier=None,
        calendar_provider: CalendarProvider | None = None,
        weather_provider: WeatherProvider | None = None,
        news_provider: NewsProvider | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config or FitPickConfig.from_env()
        configure_logging()
        log_event(LOGGER, logging.INFO, "app_configured", **self.config.describe())

        if generator is None and self.config.api_key:
            generator = GeminiClient(
                model=self.config.model,
                image_model=self.config.image_model,
                api_key=self.config.api_key,
            )
        if classifier is None and isinstance(generator, GeminiClient):
            classifier = GeminiLabelClassifier(
                generator, garment_label_prompt([category.value for category in ClothingCategory])
            )
        self.generator = generator

        self.wardrobe_store = SQLiteWardrobeStore(self.config.database_path)
        self.social_store = SQLiteSocialStore(self.config.database_path)
        self.media_store = LocalMediaStore(self.config.media_dir, self.config.media_base_url)

        self.calendar_provider = calendar_provider or FallbackCalendarProvider(
            GoogleCalendarProvider(
                credentials_path=self.config.google_credentials_path,
                calendar_id=self.config.calendar_id,
            ),
            StubCalendarProvider(),
        )
        self.weather_provider = weather_provider or OpenMeteoWeatherProvider()
        self.news_provider = news_provider or NewsProvider(api_key=self.config.news_api_key)
        self.notifier = notifier or LoggingNotifier()

        self.calendar_agent = CalendarAgent(self.calendar_provider)
        self.weather_agent = WeatherAgent(self.weather_provider, generator=generator)
        self.stylist_agent = StylistAgent(
            self.wardrobe_store, self.social_store, self.weather_provider, generator=generator
        )
        self.closet_agent = ClosetAgent(self.wardrobe_store, self.media_store, classifier)
        self.try_on_agent = TryOnAgent(
            self.wardrobe_store, self.social_store, self.media_store, generator=generator
        )
        self.social_agent = SocialAgent(self.social_store, self.media_store)
        self.account_agent = AccountAgent(self.social_store, self.notifier)
        self.reminder_service = WardrobeReminderService(
            self.calendar_agent, self.closet_agent, self.notifier
        )

    def calendar_for(self, access_token: Optional[str] = None) -> CalendarAgent:
        """Calendar agent for one signed-in user, or the default one without a token."""

        if not access_token:
            return self.calendar_agent
        return CalendarAgent(
            FallbackCalendarProvider(
                GoogleCalendarProvider(
                    access_token=access_token, calendar_id=self.config.calendar_id
                ),
                StubCalendarProvider(),
            )
        )

    def run_reminder_check(
        self, email: str, access_token: Optional[str] = None
    ) -> Optional[Reminder]:
        return self.reminder_service.run_reminder_check(
            email, calendar_agent=self.calendar_for(access_token)
        )

    def gap_check(
        self,
        email: str,
        event: str,
        event_date: Optional[date] = None,
        coordinates: Optional[Tuple[float, float]] = None,
        locality: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Wardrobe gap check for one event, with the forecast for its day.

        Without coordinates the locality is geocoded so the forecast can
        still be looked up.
        """

        if coordinates is None and locality:
            place = self.weather_provider.geocode(locality)
            if place is not None:
                coordinates = (place[0], place[1])
        return self.stylist_agent.handle_calendar_event(
            email, event, event_date, coordinates, locality
        ).to_dict()

    def estimate_measurements(
        self,
        email: str,
        joints: Mapping[str, Sequence[float]],
        height_cm: float,
        image_size: Optional[Tuple[int, int]] = None,
        save: bool = True,
    ) -> Dict[str, Any]:
        """Estimate body measurements from pose joints and optionally store them."""

        pose_status = assess_pose(joints)
        estimate = estimate_body_measurements(joints, height_cm, image_size)
        if estimate is None:
            return {"status": "incomplete_pose", "pose": pose_status, "measurements": None, "display": None}

        values = estimate.to_dict()
        if save:
            self.social_store.upsert_user(email)
            values = self.social_store.update_measurements(email, values)
        return {
            "status": "ok",
            "pose": pose_status,
            "measurements": values,
            "display": format_measurements(estimate),
        }

    def home_briefing(
        self,
        email: str,
        hour: Optional[int] = None,
        coordinates: Optional[Tuple[float, float]] = None,
        locality: Optional[str] = None,
        event: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Everything the home screen shows in one payload.

        When ``event`` is not given the next real calendar event is used. The
        gap check only runs when there is an event to dress for. ``agenda``
        lists today's events and may hold flagged samples when no calendar
        is connected.
        """

        with operation_context("app:home_briefing") as correlation_id:
            now = datetime.now(timezone.utc)
            hour = now.hour if hour is None else hour
            band = time_of_day(hour)
            user = self.social_store.get_user(email)

            temperature = None
            condition = None
            if coordinates is not None:
                temperature = self.weather_provider.current_temperature(*coordinates)
                today = self.weather_provider.forecast(coordinates[0], coordinates[1], now.date())
                condition = today.condition if today else None

            calendar = self.calendar_for(access_token)
            agenda = [item.to_dict() for item in calendar.upcoming_events(email, now=now)]
            event_title = event
            event_date = now.date()
            if not event_title:
                upcoming = calendar.next_event(email, now=now)
                if upcoming is not None:
                    event_title = upcoming.display_text
                    event_date = upcoming.start_time.date()

            gap = None
            if event_title:
                gap = self.stylist_agent.handle_calendar_event(
                    email, event_title, event_date, coordinates, locality
                ).to_dict()

            news = [article.to_dict() for article in self.news_provider.fetch_trending(locality)]
            response = {
                "greeting": greeting_for_hour(hour),
                "name": user.display_name if user else None,
                "time_of_day": band,
                "briefing": briefing_for_hour(hour),
                "temperature": f"{temperature:.0f}°C" if temperature is not None else None,
                "weather_tip": self.weather_agent.accessory_tip(locality, band, temperature, condition),
                "event": event_title,
                "agenda": agenda,
                "gap": gap,
                "news": news,
            }
            log_event(
                LOGGER,
                level=logging.INFO,
                event="app_call_completed",
                agent="app",
                method="home_briefing",
                correlation_id=correlation_id,
                has_event=bool(event_title),
                news_count=len(news),
            )
            return response


__all__ = ["FitPickApp"]
