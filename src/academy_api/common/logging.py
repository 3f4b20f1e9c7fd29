"""Structured logging for the academy API.

Every record carries the request it was emitted under: the request ID, the
API surface (``user``, ``academy``, ``admin``, ``webhook`` or ``public``) and,
once the bearer token has been resolved, the acting user. Records render as
console lines or as one JSON object per line.

Event names follow ``area.action.outcome`` and structured fields go through
``extra=log_context(...)``::

    logger.info(
        "booking.create.success",
        extra=log_context(user_id=user.id, booking_id=booking.booking_id),
    )
"""

from __future__ import annotations

import json
import logging
import logging.config
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from academy_api.settings import Settings

SERVICE_NAME = "academy-api"

# Fields that may reach a log call through ``extra`` but must never be written out.
REDACTED_FIELDS = frozenset(
    {
        "otp",
        "password",
        "new_password",
        "refresh_token",
        "id_token",
        "razorpay_signature",
        "signature",
    }
)

_CONTEXT_FIELDS = ("request_id", "surface", "user_id")
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "color_message"}


@dataclass(slots=True)
class RequestContext:
    request_id: str
    surface: str
    user_id: str | None = None


# Sync dependencies run on a copy of the context; they mutate this object in place.
_REQUEST: ContextVar[RequestContext | None] = ContextVar("academy_api_request", default=None)


def bind_request(request_id: str, surface: str) -> Token[RequestContext | None]:
    return _REQUEST.set(RequestContext(request_id=request_id, surface=surface))


def bind_user(user_id: UUID | str) -> None:
    context = _REQUEST.get()
    if context is not None:
        context.user_id = str(user_id)


def reset_request(token: Token[RequestContext | None]) -> None:
    _REQUEST.reset(token)


def log_context(
    *,
    user_id: UUID | str | None = None,
    booking_id: UUID | str | None = None,
    center_id: UUID | str | None = None,
    batch_id: UUID | str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build the ``extra`` mapping for a structured log call.

    Identifier arguments are stringified and dropped when ``None``.
    """
    ids = {
        "user_id": user_id,
        "booking_id": booking_id,
        "center_id": center_id,
        "batch_id": batch_id,
    }
    ctx: dict[str, Any] = {key: str(value) for key, value in ids.items() if value is not None}
    ctx.update(extra)
    return ctx


class RequestContextFilter(logging.Filter):
    """Stamp request fields on each record; explicit ``extra`` values win."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _REQUEST.get()
        for field in _CONTEXT_FIELDS:
            if getattr(record, field, None) is None:
                setattr(record, field, getattr(context, field, None) if context else None)
        return True


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Structured fields attached to ``record`` beyond the request context."""

    fields: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _RESERVED or key in _CONTEXT_FIELDS or key.startswith("_"):
            continue
        fields[key] = "[redacted]" if key in REDACTED_FIELDS else value
    return fields


def _timestamp(record: logging.LogRecord) -> str:
    moment = datetime.fromtimestamp(record.created, tz=UTC)
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{int(record.msecs):03d}Z"


class ConsoleLogFormatter(logging.Formatter):
    """``<time> <LEVEL> <logger> [<request> <surface> <user>] <event> key=value ...``"""

    def format(self, record: logging.LogRecord) -> str:
        scope = " ".join(
            str(getattr(record, field, None) or "-") for field in _CONTEXT_FIELDS
        )
        line = (
            f"{_timestamp(record)} {record.levelname:<5} {record.name} "
            f"[{scope}] {record.getMessage()}"
        )
        fields = record_fields(record)
        if fields:
            line += " " + " ".join(
                f"{key}={'null' if value is None else value}"
                for key, value in sorted(fields.items())
            )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "event": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            payload[field] = getattr(record, field, None)
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


def logging_config(settings: Settings) -> dict[str, Any]:
    """``dictConfig`` schema: one stream handler on the root logger."""

    formatter = JsonLogFormatter if settings.log_format == "json" else ConsoleLogFormatter
    routed = {
        name: {"handlers": [], "propagate": True, "level": "NOTSET"}
        for name in ("uvicorn.error", "uvicorn.access", "alembic")
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request": {"()": RequestContextFilter}},
        "formatters": {"academy": {"()": formatter}},
        "handlers": {
            "stream": {
                "class": "logging.StreamHandler",
                "filters": ["request"],
                "formatter": "academy",
            }
        },
        "root": {"handlers": ["stream"], "level": settings.log_level},
        "loggers": {
            **routed,
            "uvicorn": {"handlers": [], "propagate": True, "level": settings.log_level},
            "academy_api.request": {"level": settings.effective_request_log_level},
            "httpx": {"level": "WARNING"},
            # SQL traces only when explicitly requested.
            "sqlalchemy": {"level": settings.database_log_level or "WARNING"},
        },
    }


def setup_logging(settings: Settings) -> None:
    """Route the API, uvicorn, alembic and SQLAlchemy loggers through one handler."""

    logging.config.dictConfig(logging_config(settings))


__all__ = [
    "REDACTED_FIELDS",
    "ConsoleLogFormatter",
    "JsonLogFormatter",
    "RequestContext",
    "RequestContextFilter",
    "bind_request",
    "bind_user",
    "log_context",
    "logging_config",
    "record_fields",
    "reset_request",
    "setup_logging",
]
