from __future__ import annotations

import logging

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from academy_api.settings import Settings
from tests.utils import auth_headers, create_user

pytestmark = pytest.mark.asyncio

ADMIN = "/api/v1/admin/fee-type-configs"

QUARTERLY = {
    "fee_type": "quarterly",
    "label": "Quarterly fee",
    "form_fields": [
        {"name": "amount", "label": "Amount", "type": "number", "required": True, "min": 0},
        {
            "name": "mode",
            "label": "Mode",
            "type": "select",
            "options": [{"value": "upfront", "label": "Upfront"}],
        },
    ],
}


@pytest.fixture()
def admin_headers(db_session: Session, settings: Settings) -> dict[str, str]:
    admin = create_user(db_session, roles=("admin",))
    db_session.commit()
    return auth_headers(admin, settings)


async def test_defaults_are_seeded(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await async_client.get(ADMIN, headers=admin_headers)

    fee_types = [item["fee_type"] for item in response.json()["data"]]
    assert fee_types == ["monthly", "package", "per_session"]


async def test_create_update_and_delete_fee_type(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    created = await async_client.post(ADMIN, json=QUARTERLY, headers=admin_headers)
    assert created.status_code == 201, created.text
    config_id = created.json()["data"]["id"]

    duplicate = await async_client.post(ADMIN, json=QUARTERLY, headers=admin_headers)
    assert duplicate.status_code == 409

    renamed = await async_client.patch(
        f"{ADMIN}/{config_id}", json={"label": "Per quarter"}, headers=admin_headers
    )
    assert renamed.json()["data"]["label"] == "Per quarter"

    deleted = await async_client.delete(f"{ADMIN}/{config_id}", headers=admin_headers)
    assert deleted.status_code == 200
    revived = await async_client.post(ADMIN, json=QUARTERLY, headers=admin_headers)
    assert revived.status_code == 201
    assert revived.json()["data"]["id"] == config_id


async def test_select_fields_need_options(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    payload = {
        "fee_type": "broken",
        "label": "Broken",
        "form_fields": [{"name": "mode", "label": "Mode", "type": "select"}],
    }

    response = await async_client.post(ADMIN, json=payload, headers=admin_headers)

    assert response.status_code == 400


async def test_update_rejects_duplicate_field_names(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    created = await async_client.post(ADMIN, json=QUARTERLY, headers=admin_headers)
    config_id = created.json()["data"]["id"]
    field = {"name": "amount", "label": "Amount", "type": "number"}

    response = await async_client.patch(
        f"{ADMIN}/{config_id}", json={"form_fields": [field, field]}, headers=admin_headers
    )

    assert response.status_code == 400


async def test_academy_sees_only_active_fee_types(
    async_client: AsyncClient,
    db_session: Session,
    admin_headers: dict[str, str],
    settings: Settings,
) -> None:
    academy = create_user(db_session, roles=("academy",))
    db_session.commit()
    configs = await async_client.get(ADMIN, headers=admin_headers)
    package = next(item for item in configs.json()["data"] if item["fee_type"] == "package")
    await async_client.patch(
        f"{ADMIN}/{package['id']}", json={"is_active": False}, headers=admin_headers
    )

    response = await async_client.get(
        "/api/v1/academy/fee-type-configs", headers=auth_headers(academy, settings)
    )

    assert [item["fee_type"] for item in response.json()["data"]] == ["monthly", "per_session"]


async def test_update_is_logged_with_changed_fields(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    caplog: pytest.LogCaptureFixture,
) -> None:
    created = await async_client.post(ADMIN, json=QUARTERLY, headers=admin_headers)
    config_id = created.json()["data"]["id"]

    with caplog.at_level(logging.INFO, logger="academy_api.features.fee_types.service"):
        await async_client.patch(
            f"{ADMIN}/{config_id}",
            json={"label": "Per quarter", "is_active": False},
            headers=admin_headers,
        )

    [record] = [item for item in caplog.records if item.getMessage() == "fee_type.update.success"]
    assert record.fee_type == "quarterly"
    assert record.fields == ["is_active", "label"]
