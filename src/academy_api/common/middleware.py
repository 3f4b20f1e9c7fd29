"""Request-scoped middleware: request IDs, API surface and access logging."""

from __future__ import annotations

import logging
import re
import time
from uuid import uuid4

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from academy_api.settings import Settings

from .logging import bind_request, log_context, reset_request

REQUEST_ID_HEADER = "X-Request-ID"
API_PREFIX = "/api/v1"

_REQUEST_LOGGER = logging.getLogger("academy_api.request")
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")
_SURFACES = ("user", "academy", "admin")


def resolve_request_id(raw: str | None) -> str:
    """Reuse a caller's request ID when it is short and printable."""

    if raw and _REQUEST_ID_PATTERN.match(raw):
        return raw
    return uuid4().hex


def api_surface(path: str) -> str:
    """Name the client a route serves, from its path under the API prefix."""

    if not path.startswith(f"{API_PREFIX}/"):
        return "public"
    section = path[len(API_PREFIX) + 1 :].split("/", 1)[0]
    if section in _SURFACES:
        return section
    if section == "webhooks":
        return "webhook"
    return "public"


class RequestContextMiddleware:
    """Bind the request context for logging and emit one access line per request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = resolve_request_id(Headers(scope=scope).get(REQUEST_ID_HEADER))
        path = scope["path"]
        token = bind_request(request_id, api_surface(path))
        status_code: int | None = None
        start = time.perf_counter()

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            extra = log_context(
                method=scope["method"],
                path=path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
            )
            if status_code is None or status_code >= 500:
                _REQUEST_LOGGER.error("request.failed", extra=extra)
            else:
                _REQUEST_LOGGER.info("request.complete", extra=extra)
            reset_request(token)


def register_middleware(app: FastAPI, *, settings: Settings) -> None:
    origins = list(settings.server_cors_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[REQUEST_ID_HEADER],
        )

    app.add_middleware(RequestContextMiddleware)


__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
    "api_surface",
    "register_middleware",
    "resolve_request_id",
]
