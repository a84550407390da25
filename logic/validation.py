"""Pydantic schemas for external payloads and provider call contracts."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator


class CalendarQuery(BaseModel):
    """Input contract for calendar lookups."""

    user_id: str = Field(min_length=1)
    start_date: date
    end_date: date
    max_results: int = Field(default=50, ge=1, le=250)

    @model_validator(mode="after")
    def _validate_range(self) -> "CalendarQuery":
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot precede start_date")
        return self


class ForecastQuery(BaseModel):
    """Input contract for daily forecast lookups."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    day: date


class OpenMeteoCurrentWeather(BaseModel):
    temperature: float
    weathercode: Optional[int] = None


class OpenMeteoCurrentResponse(BaseModel):
    current_weather: OpenMeteoCurrentWeather


class OpenMeteoDaily(BaseModel):
    time: List[str] = []
    temperature_2m_max: List[Optional[float]] = []
    temperature_2m_min: List[Optional[float]] = []
    weathercode: List[Optional[int]] = []


class OpenMeteoDailyResponse(BaseModel):
    daily: OpenMeteoDaily


class GeocodingResult(BaseModel):
    name: str
    latitude: float
    longitude: float
    country: Optional[str] = None
    admin1: Optional[str] = None


class GeocodingResponse(BaseModel):
    results: List[GeocodingResult] = []


class NewsSource(BaseModel):
    name: Optional[str] = None


class NewsArticlePayload(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    source: Optional[NewsSource] = None


class NewsApiResponse(BaseModel):
    status: str = "ok"
    articles: List[NewsArticlePayload] = []


class ValidationResult(BaseModel):
    """Wrapper returned when an external payload fails validation."""

    status: Literal["invalid_payload"] = "invalid_payload"
    message: str
    details: List[Dict[str, Any]]


def validation_failure(message: str, exc: ValidationError) -> Dict[str, Any]:
    """Translate Pydantic errors into a consistent log payload."""

    return ValidationResult(message=message, details=exc.errors()).model_dump()


__all__ = [
    "CalendarQuery",
    "ForecastQuery",
    "GeocodingResponse",
    "GeocodingResult",
    "NewsApiResponse",
    "NewsArticlePayload",
    "NewsSource",
    "OpenMeteoCurrentResponse",
    "OpenMeteoDailyResponse",
    "ValidationResult",
    "validation_failure",
]
