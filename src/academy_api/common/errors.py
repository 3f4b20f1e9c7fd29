"""Domain error type and the uniform failure envelope."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from fastapi import status

from .schema import BaseSchema


@dataclass(frozen=True)
class ErrorDefinition:
    """Canonical message for an HTTP status when the caller supplies none."""

    status: int
    message: str


ERROR_DEFINITIONS: dict[int, ErrorDefinition] = {
    400: ErrorDefinition(status.HTTP_400_BAD_REQUEST, "Bad request"),
    401: ErrorDefinition(status.HTTP_401_UNAUTHORIZED, "Unauthorized"),
    403: ErrorDefinition(status.HTTP_403_FORBIDDEN, "Forbidden"),
    404: ErrorDefinition(status.HTTP_404_NOT_FOUND, "Not found"),
    405: ErrorDefinition(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed"),
    409: ErrorDefinition(status.HTTP_409_CONFLICT, "Conflict"),
    422: ErrorDefinition(422, "Validation failed"),
    429: ErrorDefinition(status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests"),
    500: ErrorDefinition(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
    502: ErrorDefinition(status.HTTP_502_BAD_GATEWAY, "Upstream service error"),
    503: ErrorDefinition(status.HTTP_503_SERVICE_UNAVAILABLE, "Service unavailable"),
}


def default_message(status_code: int) -> str:
    definition = ERROR_DEFINITIONS.get(status_code)
    if definition is not None:
        return definition.message
    return "Request failed" if status_code < 500 else "Internal server error"


class ErrorItem(BaseSchema):
    """Field-level error detail."""

    field: str
    message: str


class ErrorEnvelope(BaseSchema):
    """Body returned for every failed request."""

    success: bool = False
    message: str
    errors: list[ErrorItem] | None = None


class ApiError(RuntimeError):
    """Raise from services or routers to return a structured failure."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        *,
        errors: Sequence[ErrorItem] | Sequence[Mapping[str, str]] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message or default_message(status_code)
        self.errors = _coerce_items(errors)
        self.headers = dict(headers) if headers else None
        super().__init__(self.message)

    def to_envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(message=self.message, errors=self.errors or None)


def bad_request(message: str, *, errors: Sequence[Any] | None = None) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, message, errors=errors)


def unauthorized(message: str = "Authentication required") -> ApiError:
    return ApiError(
        status.HTTP_401_UNAUTHORIZED,
        message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden(message: str = "You do not have permission to perform this action") -> ApiError:
    return ApiError(status.HTTP_403_FORBIDDEN, message)


def not_found(message: str = "Resource not found") -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, message)


def conflict(message: str) -> ApiError:
    return ApiError(status.HTTP_409_CONFLICT, message)


def bad_gateway(message: str) -> ApiError:
    return ApiError(status.HTTP_502_BAD_GATEWAY, message)


def error_items_from_pydantic(errors: Iterable[Mapping[str, Any]]) -> list[ErrorItem]:
    """Flatten pydantic/FastAPI validation errors into ``{field, message}`` items."""

    items: list[ErrorItem] = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        message = str(error.get("msg") or "Invalid value")
        if message.startswith("Value error, "):
            message = message.removeprefix("Value error, ")
        items.append(ErrorItem(field=field, message=message))
    return items


def _coerce_items(
    errors: Sequence[ErrorItem] | Sequence[Mapping[str, str]] | None,
) -> list[ErrorItem]:
    if not errors:
        return []
    items: list[ErrorItem] = []
    for entry in errors:
        if isinstance(entry, ErrorItem):
            items.append(entry)
        else:
            items.append(ErrorItem(field=str(entry["field"]), message=str(entry["message"])))
    return items


__all__ = [
    "ApiError",
    "ERROR_DEFINITIONS",
    "ErrorEnvelope",
    "ErrorItem",
    "bad_gateway",
    "bad_request",
    "conflict",
    "default_message",
    "error_items_from_pydantic",
    "forbidden",
    "not_found",
    "unauthorized",
]
