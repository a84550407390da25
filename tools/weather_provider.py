"""Weather provider abstractions backed by the Open-Meteo API."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

import requests
from pydantic import ValidationError

from fitpick_app.logging_config import get_logger, log_event
from logic.validation import (
    ForecastQuery,
    GeocodingResponse,
    OpenMeteoCurrentResponse,
    OpenMeteoDailyResponse,
    validation_failure,
)
from tools.observability import instrument_call


LOGGER = get_logger(__name__)
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"


@dataclass
class Forecast:
    """Daily forecast summary in Celsius."""

    max: float
    min: float
    condition: str

    @property
    def average(self) -> int:
        return int(round((self.max + self.min) / 2.0))


def condition_description(code: Optional[int]) -> str:
    """Map a WMO weather code to the short phrase shown to users."""

    if code == 0:
        return "clear skies"
    if code in (1, 2, 3):
        return "partly cloudy"
    if code in (45, 48):
        return "fog"
    if code in (51, 53, 55):
        return "drizzle"
    if code in (61, 63, 65):
        return "rain"
    if code in (71, 73, 75):
        return "snow"
    if code in (80, 81, 82):
        return "showers"
    return "mixed conditions"


def weather_snippet(forecast: Optional[Forecast]) -> Optional[str]:
    if forecast is None:
        return None
    return f"Expect {forecast.average}°C, {forecast.condition}"


class WeatherProvider(ABC):
    """Abstract weather provider interface.

    Implementations return ``None`` instead of raising when the upstream
    service is unreachable or answers with an unexpected payload.
    """

    @abstractmethod
    def current_temperature(self, latitude: float, longitude: float) -> Optional[float]:
        """Return the current temperature in Celsius."""

    @abstractmethod
    def forecast(self, latitude: float, longitude: float, day: date) -> Optional[Forecast]:
        """Return the daily forecast for ``day``."""

    @abstractmethod
    def geocode(self, name: str) -> Optional[Tuple[float, float, str]]:
        """Resolve a place name to ``(latitude, longitude, locality)``."""


class OpenMeteoWeatherProvider(WeatherProvider):
    """Open-Meteo provider with schema validation and graceful fallbacks."""

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        self.timeout_seconds = timeout_seconds

    def _get_json(self, url: str, params: dict) -> Optional[dict]:
        try:
            response = requests.get(url, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            return response.json()
        except requests.Timeout:
            log_event(LOGGER, logging.ERROR, "weather_request_timeout", url=url)
            return None
        except (requests.RequestException, ValueError) as exc:
            log_event(LOGGER, logging.ERROR, "weather_request_failed", url=url, error=str(exc))
            return None

    @instrument_call("open_meteo_current")
    def current_temperature(self, latitude: float, longitude: float) -> Optional[float]:
        payload = self._get_json(
            FORECAST_URL,
            {
                "latitude": latitude,
                "longitude": longitude,
                "current_weather": "true",
                "temperature_unit": "celsius",
            },
        )
        if payload is None:
            return None
        try:
            parsed = OpenMeteoCurrentResponse.model_validate(payload)
        except ValidationError as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "weather_schema_invalid",
                failure=validation_failure("current weather payload", exc),
            )
            return None
        return parsed.current_weather.temperature

    def forecast(self, latitude: float, longitude: float, day: date) -> Optional[Forecast]:
        return self._daily_forecast(latitude=latitude, longitude=longitude, day=day)

    @instrument_call("open_meteo_forecast", input_model=ForecastQuery)
    def _daily_forecast(self, *, latitude: float, longitude: float, day: date) -> Optional[Forecast]:
        day_text = day.isoformat()
        payload = self._get_json(
            FORECAST_URL,
            {
                "latitude": latitude,
                "longitude": longitude,
                "daily": "temperature_2m_max,temperature_2m_min,weathercode",
                "timezone": "auto",
                "start_date": day_text,
                "end_date": day_text,
            },
        )
        if payload is None:
            return None
        try:
            daily = OpenMeteoDailyResponse.model_validate(payload).daily
        except ValidationError as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "weather_schema_invalid",
                failure=validation_failure("daily forecast payload", exc),
            )
            return None

        if not (daily.temperature_2m_max and daily.temperature_2m_min and daily.weathercode):
            log_event(LOGGER, logging.WARNING, "weather_forecast_empty", day=day_text)
            return None
        high = daily.temperature_2m_max[0]
        low = daily.temperature_2m_min[0]
        if high is None or low is None:
            return None
        return Forecast(max=high, min=low, condition=condition_description(daily.weathercode[0]))

    @instrument_call("open_meteo_geocode")
    def geocode(self, name: str) -> Optional[Tuple[float, float, str]]:
        if not name or not name.strip():
            raise ValueError("A place name is required for geocoding")
        payload = self._get_json(GEOCODING_URL, {"name": name.strip(), "count": 1})
        if payload is None:
            return None
        try:
            results = GeocodingResponse.model_validate(payload).results
        except ValidationError as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "weather_schema_invalid",
                failure=validation_failure("geocoding payload", exc),
            )
            return None
        if not results:
            return None
        top = results[0]
        return top.latitude, top.longitude, top.name


class MockWeatherProvider(WeatherProvider):
    """Offline deterministic weather provider for tests."""

    def __init__(
        self,
        temperature: Optional[float] = 18.0,
        forecast: Optional[Forecast] = None,
        places: Optional[dict] = None,
    ) -> None:
        self.temperature = temperature
        self.profile = forecast or Forecast(max=21.0, min=15.0, condition="partly cloudy")
        self.places = places or {}
        self.forecast_calls: list = []

    def current_temperature(self, latitude: float, longitude: float) -> Optional[float]:
        return self.temperature

    def forecast(self, latitude: float, longitude: float, day: date) -> Optional[Forecast]:
        self.forecast_calls.append((latitude, longitude, day))
        return self.profile

    def geocode(self, name: str) -> Optional[Tuple[float, float, str]]:
        return self.places.get(name)


__all__ = [
    "Forecast",
    "MockWeatherProvider",
    "OpenMeteoWeatherProvider",
    "WeatherProvider",
    "condition_description",
    "weather_snippet",
]
