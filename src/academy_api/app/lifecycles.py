"""FastAPI lifespan helpers for the academy application."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import Lifespan
from sqlalchemy import text
from sqlalchemy.engine import make_url

from academy_api.common.logging import log_context
from academy_api.common.validators import utc_now
from academy_api.db.migrate import run_migrations
from academy_api.db.session import init_db, session_factory, shutdown_db
from academy_api.settings import Settings

from .bootstrap import seed_defaults

logger = logging.getLogger(__name__)

# Integration clients cached on ``app.state`` that hold open HTTP connections.
CLOSABLE_STATE_ATTRS = ("payment_gateway", "sms_sender")


def close_integrations(app: FastAPI) -> None:
    for attr in CLOSABLE_STATE_ATTRS:
        client = getattr(app.state, attr, None)
        close = getattr(client, "close", None)
        if callable(close):
            try:
                close()
            except Exception:
                logger.warning("integration.close.failed", extra={"client": attr}, exc_info=True)
        setattr(app.state, attr, None)


def create_application_lifespan(*, settings: Settings) -> Lifespan[FastAPI]:
    """Return the FastAPI lifespan handler used by the app factory."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.settings = settings
        app.state.started_at = utc_now()
        logger.info(
            "academy_api.startup",
            extra=log_context(
                environment=settings.environment,
                logging_level=settings.log_level,
                version=settings.app_version,
            ),
        )

        safe_url = make_url(settings.database_url).render_as_string(hide_password=True)
        if settings.database_auto_migrate:
            await asyncio.to_thread(run_migrations, settings)

        logger.info("db.init.start", extra={"database_url": safe_url})
        await init_db(app, settings)
        logger.info("db.init.complete", extra={"database_url": safe_url})
        factory = session_factory(app)

        def _check_schema() -> None:
            with factory() as session:
                session.execute(text("SELECT 1 FROM alembic_version"))

        def _seed() -> None:
            with factory() as session:
                with session.begin():
                    seed_defaults(session, settings)

        try:
            try:
                await asyncio.to_thread(_check_schema)
            except Exception as exc:
                logger.error("db.schema.missing", extra={"database_url": safe_url}, exc_info=True)
                raise RuntimeError(
                    "Database schema is not initialized. "
                    "Run `academy-api migrate` before starting the API."
                ) from exc

            await asyncio.to_thread(_seed)
            yield
        finally:
            close_integrations(app)
            shutdown_db(app)
            logger.info("academy_api.shutdown")

    return lifespan


__all__ = ["close_integrations", "create_application_lifespan"]
