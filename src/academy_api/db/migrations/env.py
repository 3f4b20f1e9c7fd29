"""Alembic environment for the academy schema.

``academy_api.db.migrate`` hands over the resolved ``Settings`` (and, from
tests, an open connection) through ``config.attributes``. Anything else falls
back to the ``ACADEMY_*`` environment.
"""

from __future__ import annotations

from alembic import context
from sqlalchemy.engine import Connection

import academy_api.models  # noqa: F401  registers every table on Base.metadata
from academy_api.db.base import Base
from academy_api.db.engine import build_engine
from academy_api.settings import Settings, get_settings

config = context.config


def _settings() -> Settings:
    provided = config.attributes.get("settings")
    return provided if isinstance(provided, Settings) else get_settings()


def _run(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=Base.metadata,
        # SQLite cannot ALTER most constraints in place.
        render_as_batch=connection.dialect.name == "sqlite",
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    context.configure(
        url=_settings().database_url,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        _run(connection)
        return

    engine = build_engine(_settings())
    try:
        with engine.connect() as connection:
            _run(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
