"""Programmatic Alembic entry points used by the CLI, lifespan and tests."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from academy_api.settings import Settings, get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def build_alembic_config(settings: Settings) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.attributes["settings"] = settings
    return config


def run_migrations(settings: Settings | None = None, *, revision: str = "head") -> None:
    resolved = settings or get_settings()
    logger.info("db.migrate.start", extra={"revision": revision})
    command.upgrade(build_alembic_config(resolved), revision)
    logger.info("db.migrate.complete", extra={"revision": revision})


__all__ = ["MIGRATIONS_DIR", "build_alembic_config", "run_migrations"]
