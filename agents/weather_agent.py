"""Weather agent that turns current conditions into a short accessory tip."""

from __future__ import annotations

import logging
from typing import Optional

from fitpick_app.logging_config import get_logger, log_event, operation_context
from logic.prompts import weather_tip_prompt
from tools.weather_provider import WeatherProvider

LOGGER = get_logger(__name__)
DEFAULT_TEMPERATURE_C = 20.0


def heuristic_tip(temperature_c: Optional[float], condition: Optional[str]) -> str:
    """Rule-based tip used whenever the model is unavailable."""

    temp = DEFAULT_TEMPERATURE_C if temperature_c is None else temperature_c
    cond = (condition or "mixed conditions").lower()
    if "rain" in cond or "showers" in cond or "drizzle" in cond:
        return "Carry a compact umbrella and wear water-resistant footwear."
    if temp <= 8:
        return "Layer up with a warm coat and consider a scarf for extra warmth."
    if temp <= 16:
        return "A light jacket or knit works well for this temperature."
    if "clear" in cond or "partly cloudy" in cond:
        return "Sunglasses and a light hat will complement the look today."
    return "Consider breathable fabrics and a light outer layer for variable weather."


class WeatherAgent:
    """Fetches temperatures and asks Gemini for a weather-aware accessory tip."""

    def __init__(self, provider: WeatherProvider, generator=None) -> None:
        self.provider = provider
        self.generator = generator

    def snapshot(self, latitude: float, longitude: float) -> Optional[str]:
        temperature = self.provider.current_temperature(latitude, longitude)
        if temperature is None:
            return None
        return f"{temperature:.0f}°C"

    def accessory_tip(
        self,
        location: Optional[str],
        time_of_day: str,
        temperature_c: Optional[float],
        condition: Optional[str],
    ) -> str:
        with operation_context("agent:weather.accessory_tip") as correlation_id:
            source = "heuristic"
            tip: Optional[str] = None
            if self.generator is not None:
                prompt = weather_tip_prompt(location, time_of_day, temperature_c, condition)
                try:
                    tip = (self.generator.generate_text(prompt) or "").strip() or None
                except Exception as exc:  # model failures fall back to the rule-based tip
                    log_event(
                        LOGGER,
                        logging.WARNING,
                        "weather_tip_generation_failed",
                        correlation_id=correlation_id,
                        error=str(exc),
                    )
                if tip:
                    source = "model"
            if not tip:
                tip = heuristic_tip(temperature_c, condition)

            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="weather",
                method="accessory_tip",
                correlation_id=correlation_id,
                source=source,
                time_of_day=time_of_day,
            )
            return tip


__all__ = ["DEFAULT_TEMPERATURE_C", "WeatherAgent", "heuristic_tip"]
