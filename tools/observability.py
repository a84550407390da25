"""Instrumentation for outbound provider calls (weather, calendar, news, Gemini)."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Callable, Mapping, ParamSpec, TypeVar

from pydantic import BaseModel, ValidationError

from fitpick_app.logging_config import get_logger, log_event, operation_context, redact_for_log

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")

PREVIEW_KEYS = 6


def _argument_preview(kwargs: Mapping[str, Any]) -> dict:
    keys = list(kwargs)
    preview = {key: kwargs[key] for key in keys[:PREVIEW_KEYS]}
    if len(keys) > PREVIEW_KEYS:
        preview["truncated"] = True
    return redact_for_log(preview)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def instrument_call(
    call_name: str,
    input_model: type[BaseModel] | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Log start, completion and failure of a provider call.

    With ``input_model`` the keyword arguments are validated (and coerced)
    first; invalid input raises ``ValueError`` before the provider is hit.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with operation_context(f"provider:{call_name}") as correlation_id:
                if input_model is not None:
                    try:
                        kwargs = input_model.model_validate(kwargs).model_dump()
                    except ValidationError as exc:
                        log_event(
                            LOGGER,
                            logging.WARNING,
                            "call_validation_failed",
                            call=call_name,
                            correlation_id=correlation_id,
                            errors=exc.errors(),
                        )
                        raise ValueError(f"Invalid arguments for {call_name}: {exc}") from exc

                log_event(
                    LOGGER,
                    logging.INFO,
                    "call_started",
                    call=call_name,
                    correlation_id=correlation_id,
                    kwargs=_argument_preview(kwargs),
                )
                started = time.perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception:
                    log_event(
                        LOGGER,
                        logging.ERROR,
                        "call_failed",
                        call=call_name,
                        correlation_id=correlation_id,
                        duration_ms=_elapsed_ms(started),
                        exc_info=True,
                    )
                    raise
                log_event(
                    LOGGER,
                    logging.INFO,
                    "call_completed",
                    call=call_name,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(started),
                )
                return result

        return wrapper

    return decorator


__all__ = ["instrument_call"]
