"""Shared pytest fixtures for the academy API tests."""

from __future__ import annotations

import shutil
from collections.abc import AsyncIterator, Iterator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from academy_api.app.bootstrap import seed_defaults
from academy_api.db.engine import build_engine
from academy_api.db.migrate import run_migrations
from academy_api.main import create_app
from academy_api.settings import Settings
from tests.fakes import FakeEmailSender, FakeIdentityProvider, FakePaymentGateway, FakeSmsSender

RAZORPAY_KEY_ID = "rzp_test_key"
RAZORPAY_KEY_SECRET = "rzp-test-key-secret"
RAZORPAY_WEBHOOK_SECRET = "rzp-test-webhook-secret"
SUPER_ADMIN_EMAIL = "root@example.com"
SUPER_ADMIN_PASSWORD = "Sup3r@dminPass"


def build_test_settings(database_url: str, **overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "environment": "test",
        "database_url": database_url,
        "log_level": "WARNING",
        "jwt_secret": "test-access-secret-0123456789abcdef0123",
        "jwt_refresh_secret": "test-refresh-secret-0123456789abcdef01",
        "otp_debug_echo": True,
        "razorpay_key_id": RAZORPAY_KEY_ID,
        "razorpay_key_secret": RAZORPAY_KEY_SECRET,
        "razorpay_webhook_secret": RAZORPAY_WEBHOOK_SECRET,
        "booking_platform_fee": 0,
        "booking_gst_percentage": 18,
        "booking_gst_enabled": True,
        "booking_commission_rate": 10,
        "super_admin_email": SUPER_ADMIN_EMAIL,
        "super_admin_password": SUPER_ADMIN_PASSWORD,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(scope="session", autouse=True)
def _fast_hash_env() -> Iterator[None]:
    monkeypatch = pytest.MonkeyPatch()
    monkeypatch.setenv("ACADEMY_TEST_FAST_HASH", "1")
    yield
    monkeypatch.undo()


@pytest.fixture(scope="session")
def template_database(tmp_path_factory: pytest.TempPathFactory, _fast_hash_env: None) -> Path:
    """Migrate and seed one SQLite file that every test copies."""

    path = tmp_path_factory.mktemp("academy-template") / "template.sqlite"
    settings = build_test_settings(f"sqlite:///{path}")
    run_migrations(settings)
    engine = build_engine(settings)
    try:
        with Session(engine) as session, session.begin():
            seed_defaults(session, settings)
    finally:
        engine.dispose()
    return path


@pytest.fixture()
def settings(template_database: Path, tmp_path: Path) -> Settings:
    target = tmp_path / "academy.sqlite"
    shutil.copyfile(template_database, target)
    return build_test_settings(f"sqlite:///{target}")


@pytest.fixture()
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway(
        key_id=RAZORPAY_KEY_ID,
        key_secret=RAZORPAY_KEY_SECRET,
        webhook_secret=RAZORPAY_WEBHOOK_SECRET,
    )


@pytest.fixture()
def sms_sender() -> FakeSmsSender:
    return FakeSmsSender()


@pytest.fixture()
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture()
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture()
def app(
    settings: Settings,
    gateway: FakePaymentGateway,
    sms_sender: FakeSmsSender,
    email_sender: FakeEmailSender,
    identity_provider: FakeIdentityProvider,
) -> FastAPI:
    application = create_app(settings)
    application.state.payment_gateway = gateway
    application.state.sms_sender = sms_sender
    application.state.email_sender = email_sender
    application.state.identity_provider = identity_provider
    return application


@pytest_asyncio.fixture()
async def started_app(app: FastAPI) -> AsyncIterator[FastAPI]:
    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture()
async def async_client(started_app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=started_app),
        base_url="http://testserver",
    ) as client:
        yield client


@pytest.fixture()
def db_session(started_app: FastAPI) -> Iterator[Session]:
    """A session on the app's engine; tests commit before calling the API."""

    session = started_app.state.db_sessionmaker()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
