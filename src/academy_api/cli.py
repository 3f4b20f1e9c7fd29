"""`academy-api` command implementations."""

from __future__ import annotations

import typer
import uvicorn
from fastapi.routing import APIRoute

from academy_api.settings import get_settings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Academy API CLI (start, migrate, seed, routes).",
)


@app.command(name="start", help="Run the API with uvicorn.")
def start(
    host: str | None = typer.Option(None, help="Bind address (default: ACADEMY_API_HOST)."),
    port: int | None = typer.Option(None, help="Bind port (default: ACADEMY_API_PORT)."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    typer.echo(f"Starting Academy API on http://{host}:{port}")
    uvicorn.run(
        "academy_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=None if reload else settings.api_processes,
        log_level=settings.log_level.lower(),
    )


@app.command(name="migrate", help="Apply Alembic migrations.")
def migrate(
    revision: str = typer.Option("head", help="Target revision."),
) -> None:
    from academy_api.common.logging import setup_logging
    from academy_api.db.migrate import run_migrations

    settings = get_settings()
    setup_logging(settings)
    run_migrations(settings, revision=revision)
    typer.echo(f"Database migrated to {revision}.")


@app.command(name="seed", help="Create roles, default grants, fee-type configs and a super admin.")
def seed() -> None:
    from sqlalchemy.orm import Session

    from academy_api.app.bootstrap import seed_defaults
    from academy_api.common.logging import setup_logging
    from academy_api.db.engine import build_engine

    settings = get_settings()
    setup_logging(settings)
    engine = build_engine(settings)
    try:
        with Session(engine) as session, session.begin():
            report = seed_defaults(session, settings)
    finally:
        engine.dispose()
    typer.echo(
        f"Seeded: {report.fee_types_created} fee type(s); "
        f"super admin {'created' if report.super_admin_created else 'unchanged'}."
    )


@app.command(name="routes", help="List FastAPI routes.")
def routes() -> None:
    from academy_api.main import create_app

    application = create_app(get_settings())
    rows = []
    for route in application.routes:
        if not isinstance(route, APIRoute):
            continue
        for method in sorted(route.methods or ()):
            rows.append((route.path, method, route.name))
    for path, method, name in sorted(rows):
        typer.echo(f"{method:<7} {path:<60} {name}")


__all__ = ["app"]
