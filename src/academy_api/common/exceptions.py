"""Centralized FastAPI exception handlers with structured logging."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from academy_api.common.errors import (
    ApiError,
    ErrorEnvelope,
    ErrorItem,
    default_message,
    error_items_from_pydantic,
)
from academy_api.common.logging import log_context

_UNHANDLED_LOGGER = logging.getLogger("academy_api.errors")
_HTTP_LOGGER = logging.getLogger("academy_api.http")


def _envelope_response(
    *,
    status_code: int,
    message: str,
    errors: list[ErrorItem] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    envelope = ErrorEnvelope(message=message, errors=errors or None)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: log with a stack trace and hide the details."""
    _UNHANDLED_LOGGER.exception(
        "unhandled_exception",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            exception_type=type(exc).__name__,
        ),
    )
    return _envelope_response(status_code=500, message=default_message(500))


def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render ``HTTPException`` raised by FastAPI/Starlette internals."""
    if exc.status_code >= 500:
        _HTTP_LOGGER.error(
            "http_exception",
            extra=log_context(
                path=str(request.url.path),
                method=request.method,
                status_code=exc.status_code,
                detail=exc.detail,
            ),
        )

    message = exc.detail if isinstance(exc.detail, str) and exc.detail else None
    if exc.status_code == 500 or message is None:
        message = default_message(exc.status_code)
    return _envelope_response(
        status_code=exc.status_code,
        message=message,
        headers=getattr(exc, "headers", None),
    )


def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors = error_items_from_pydantic(exc.errors())
    _HTTP_LOGGER.debug(
        "request.validation_failed",
        extra=log_context(path=str(request.url.path), error_count=len(errors)),
    )
    return _envelope_response(
        status_code=400,
        message="Validation failed",
        errors=errors,
    )


def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        _HTTP_LOGGER.error(
            "api_error",
            extra=log_context(
                path=str(request.url.path),
                method=request.method,
                status_code=exc.status_code,
                detail=exc.message,
            ),
        )
    return _envelope_response(
        status_code=exc.status_code,
        message=exc.message,
        errors=exc.errors,
        headers=exc.headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure in the ``{success, message, errors}`` envelope."""

    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "api_error_handler",
    "http_exception_handler",
    "register_exception_handlers",
    "request_validation_exception_handler",
    "unhandled_exception_handler",
]
