"""Engine construction and the process-wide connection guard."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.pool import StaticPool

from academy_api.settings import Settings

logger = logging.getLogger(__name__)


def is_sqlite_memory_url(url: URL) -> bool:
    database = (url.database or "").strip()
    if not database or database == ":memory:":
        return True
    if database.startswith("file:"):
        return dict(url.query or {}).get("mode") == "memory"
    return False


def ensure_sqlite_database_directory(url: URL) -> None:
    """Ensure a filesystem-backed SQLite database can be created."""

    database = (url.database or "").strip()
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    path = Path(database)
    if not path.is_absolute():
        path = Path.cwd() / path
    path.parent.mkdir(parents=True, exist_ok=True)


def build_engine(settings: Settings) -> Engine:
    """Create a synchronous engine for the configured database URL."""

    url = make_url(settings.database_url)
    engine_kwargs: dict[str, Any] = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,
    }

    if url.get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.database_pool_timeout,
        }
        if is_sqlite_memory_url(url):
            engine_kwargs["poolclass"] = StaticPool
        else:
            ensure_sqlite_database_directory(url)
    else:
        engine_kwargs["pool_size"] = settings.database_pool_size
        engine_kwargs["max_overflow"] = settings.database_max_overflow
        engine_kwargs["pool_timeout"] = settings.database_pool_timeout

    engine = create_engine(url, **engine_kwargs)

    if url.get_backend_name() == "sqlite":

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record) -> None:
            # pysqlite would otherwise defer BEGIN and break SAVEPOINT scoping.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute("PRAGMA busy_timeout=30000")
            finally:
                cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_sqlite_transaction(connection) -> None:
            connection.exec_driver_sql("BEGIN")

    return engine


class DatabaseConnector:
    """Open the engine once and share it between concurrent callers.

    While a connection attempt is in flight, later callers wait on the same
    attempt instead of starting their own. A failed attempt is logged and
    re-raised to every waiter; the next call starts a fresh attempt.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._engine: Engine | None = None
        self._connecting: asyncio.Event | None = None
        self._last_error: BaseException | None = None

    async def connect(self) -> Engine:
        if self._engine is not None:
            return self._engine

        if self._connecting is not None:
            await self._connecting.wait()
            if self._engine is None:
                raise RuntimeError("Database connection failed") from self._last_error
            return self._engine

        self._connecting = asyncio.Event()
        try:
            engine = await asyncio.to_thread(self._open)
        except Exception as exc:
            self._last_error = exc
            logger.error(
                "db.connect.failed",
                extra={"backend": make_url(self._settings.database_url).get_backend_name()},
                exc_info=True,
            )
            raise
        else:
            self._engine = engine
            self._last_error = None
            logger.info(
                "db.connect.success",
                extra={"backend": engine.url.get_backend_name()},
            )
            return engine
        finally:
            waiter = self._connecting
            self._connecting = None
            waiter.set()

    def _open(self) -> Engine:
        engine = build_engine(self._settings)
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except Exception:
            engine.dispose()
            raise
        return engine

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("db.disconnect")
        self._engine = None


__all__ = [
    "DatabaseConnector",
    "build_engine",
    "ensure_sqlite_database_directory",
    "is_sqlite_memory_url",
]
