from __future__ import annotations

import logging

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from academy_api.settings import Settings
from tests.utils import auth_headers, create_user

pytestmark = pytest.mark.asyncio


async def test_health_reports_ok(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_ready_checks_database(async_client: AsyncClient) -> None:
    response = await async_client.get("/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_unknown_route_uses_error_envelope(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["message"]


async def test_request_id_header_is_echoed(async_client: AsyncClient) -> None:
    response = await async_client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers.get("X-Request-ID") == "req-123"


async def test_malformed_request_id_is_replaced(async_client: AsyncClient) -> None:
    response = await async_client.get("/health", headers={"X-Request-ID": "bad id\twith spaces"})

    issued = response.headers["X-Request-ID"]
    assert issued != "bad id\twith spaces"
    assert len(issued) == 32


async def test_access_log_names_surface_and_user(
    async_client: AsyncClient,
    db_session: Session,
    settings: Settings,
    caplog: pytest.LogCaptureFixture,
) -> None:
    user = create_user(db_session)
    db_session.commit()
    headers = {**auth_headers(user, settings), "X-Request-ID": "trace-42"}

    with caplog.at_level(logging.INFO, logger="academy_api.request"):
        response = await async_client.get("/api/v1/user/auth/me", headers=headers)

    assert response.status_code == 200
    [record] = [item for item in caplog.records if item.name == "academy_api.request"]
    assert record.getMessage() == "request.complete"
    assert record.request_id == "trace-42"
    assert record.surface == "user"
    assert record.user_id == str(user.id)
    assert record.status_code == 200
