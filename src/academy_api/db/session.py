"""Per-request SQLAlchemy sessions on the engine opened at startup.

Each request gets one session, shared by every dependency that asks for it.
The session is rolled back when the request finishes unless a write dependency
was resolved, in which case it commits once the endpoint returns.

A rejected request (an ``ApiError`` below 500) normally discards its changes.
Services can call :func:`keep_on_rejection` when some of those changes must
outlive the rejection; failed OTP attempts are the case in point.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from academy_api.common.errors import ApiError
from academy_api.common.logging import log_context
from academy_api.settings import Settings

from .engine import DatabaseConnector

logger = logging.getLogger(__name__)

KEEP_ON_REJECTION = "academy_api.keep_on_rejection"


async def init_db(app: FastAPI, settings: Settings) -> Engine:
    connector: DatabaseConnector | None = getattr(app.state, "db_connector", None)
    if connector is None:
        connector = app.state.db_connector = DatabaseConnector(settings)

    engine = await connector.connect()
    app.state.db_engine = engine
    app.state.db_sessionmaker = sessionmaker(bind=engine, expire_on_commit=False)
    return engine


def shutdown_db(app: FastAPI) -> None:
    connector: DatabaseConnector | None = getattr(app.state, "db_connector", None)
    if connector is not None:
        connector.dispose()
    app.state.db_connector = app.state.db_engine = app.state.db_sessionmaker = None


def session_factory(app: FastAPI) -> sessionmaker[Session]:
    factory = getattr(app.state, "db_sessionmaker", None)
    if factory is None:
        raise RuntimeError("Database not initialized; the application lifespan has not run")
    return factory


def keep_on_rejection(session: Session) -> None:
    """Commit this session's changes even if the request ends in a 4xx ``ApiError``."""

    session.info[KEEP_ON_REJECTION] = True


def _request_session(request: Request) -> Iterator[Session]:
    session = session_factory(request.app)()
    request.state.db_commit = False
    try:
        yield session
    except ApiError as exc:
        if (
            exc.status_code < 500
            and request.state.db_commit
            and session.info.get(KEEP_ON_REJECTION)
        ):
            session.commit()
        else:
            session.rollback()
        if exc.status_code >= 500:
            logger.warning(
                "db.session.rollback",
                extra=log_context(path=request.url.path, status_code=exc.status_code),
            )
        raise
    except Exception:
        session.rollback()
        raise
    else:
        if request.state.db_commit:
            session.commit()
        else:
            session.rollback()
    finally:
        session.close()


def get_db_write(
    request: Request, session: Annotated[Session, Depends(_request_session)]
) -> Session:
    request.state.db_commit = True
    return session


def get_db_read(session: Annotated[Session, Depends(_request_session)]) -> Session:
    return session


__all__ = [
    "KEEP_ON_REJECTION",
    "get_db_read",
    "get_db_write",
    "init_db",
    "keep_on_rejection",
    "session_factory",
    "shutdown_db",
]
