"""JSON logging with per-request correlation ids for the FitPick backend."""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import uuid
from typing import Any, Dict, Iterator, Optional

SERVICE_NAME = "fitpick"

CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)
OPERATION: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("operation", default=None)

# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES = set(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}

# Keys whose values never reach the log stream.
_SENSITIVE_KEYS = frozenset(
    {
        "email",
        "user_email",
        "owner_email",
        "author_email",
        "target_email",
        "caption",
        "bio",
        "image_url",
        "selfie_url",
        "avatar_url",
        "fcm_token",
        "access_token",
        "api_key",
        "description",
    }
)
_EMAIL = re.compile(r"[\w.\-+]+@[\w.\-]+")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, tagged with the service and correlation id."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", None) or record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
            "operation": getattr(record, "operation", None) or OPERATION.get(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and key not in payload
        }
        payload.update(redact_for_log(extras))
        return json.dumps(payload, default=str)


def configure_logging(level: int | str | None = None) -> None:
    """Route the root logger through a single JSON stream handler."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.root.handlers.clear()
    logging.basicConfig(level=level or os.getenv("LOG_LEVEL", "INFO"), handlers=[handler])


def redact_for_log(payload: Any) -> Any:
    """Scrub emails, URLs, tokens and captions from a log payload.

    Image bytes are summarised by length so raw uploads never end up in logs.
    """

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        if _EMAIL.search(payload):
            return _EMAIL.sub("[redacted-email]", payload)
        return "[redacted-url]" if payload.lower().startswith("http") else payload
    if isinstance(payload, (bytes, bytearray)):
        return f"<{len(payload)} bytes>"
    if isinstance(payload, dict):
        return {
            key: "[redacted]" if key in _SENSITIVE_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set)):
        return [redact_for_log(item) for item in payload]
    return str(payload)


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Adopt ``correlation_id``, keep the current one, or mint a new id."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    minted = uuid.uuid4().hex
    CORRELATION_ID.set(minted)
    return minted


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    token = CORRELATION_ID.set(correlation_id or ensure_correlation_id())
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with redacted keyword fields as structured extras."""

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, **redact_for_log(fields)},
    )


@contextlib.contextmanager
def operation_context(name: str, **attributes: Any) -> Iterator[str]:
    """Scope a correlation id and an operation name (``agent:closet.save``)."""

    correlation_id = ensure_correlation_id(attributes.get("correlation_id"))
    operation_token = OPERATION.set(name)
    try:
        with correlation_context(correlation_id) as scoped_id:
            yield scoped_id
    finally:
        OPERATION.reset(operation_token)


__all__ = [
    "JsonFormatter",
    "SERVICE_NAME",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
