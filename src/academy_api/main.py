"""Application factory for the academy marketplace API.

``/health`` and ``/ready`` sit at the root; every other route is mounted under
``/api/v1``, split into the ``user``, ``academy`` and ``admin`` surfaces plus
public catalog routes and the Razorpay webhook.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from .api.v1.router import create_api_router
from .app.lifecycles import create_application_lifespan
from .common.exceptions import register_exception_handlers
from .common.logging import log_context, setup_logging
from .common.middleware import API_PREFIX, register_middleware
from .features.health.router import router as health_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    docs = settings.api_docs_enabled
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        summary="Coaching center discovery, batch bookings and payments.",
        docs_url=f"{API_PREFIX}/docs" if docs else None,
        redoc_url=None,
        openapi_url=f"{API_PREFIX}/openapi.json" if docs else None,
        lifespan=create_application_lifespan(settings=settings),
    )
    app.state.settings = settings

    register_exception_handlers(app)
    register_middleware(app, settings=settings)
    app.include_router(health_router)
    app.include_router(create_api_router(), prefix=API_PREFIX)

    logger.debug(
        "app.create.success",
        extra=log_context(environment=settings.environment, routes=len(app.routes), docs=docs),
    )
    return app


__all__ = ["API_PREFIX", "create_app"]
