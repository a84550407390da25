"""Time-of-day greeting and briefing copy for the home screen."""

from __future__ import annotations


def _band(hour: int) -> str:
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be between 0 and 23, got {hour}")
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return "night"


def time_of_day(hour: int) -> str:
    return _band(hour)


def greeting_for_hour(hour: int) -> str:
    return f"Good {_band(hour)}"


def briefing_for_hour(hour: int) -> str:
    """Short styling hint; mornings are split into early and late bands."""

    band = _band(hour)
    if band == "morning":
        if hour < 9:
            return "Light layers are recommended for cooler mornings."
        return "A casual smart look works well for mixed plans."
    if band == "afternoon":
        return "Consider breathable fabrics for daytime comfort."
    if band == "evening":
        return "Dress up for night events or relax with comfortable layers."
    return "Keep it cozy and comfortable for winding down."


__all__ = ["briefing_for_hour", "greeting_for_hour", "time_of_day"]
