from __future__ import annotations

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from academy_api.common.validators import utc_now
from academy_api.settings import Settings
from tests.utils import auth_headers, create_participant, create_user, error_fields

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/user/participants"


async def test_create_and_list_participants(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    user = create_user(db_session)
    create_participant(db_session, user=user, is_self=True, first_name="Self")
    db_session.commit()
    headers = auth_headers(user, settings)

    created = await async_client.post(
        BASE,
        json={"first_name": "Anaya", "gender": "female", "dob": "2015-03-02", "disability": 0},
        headers=headers,
    )
    assert created.status_code == 201, created.text
    assert created.json()["data"]["is_self"] is False

    listed = await async_client.get(BASE, headers=headers)
    page = listed.json()["data"]
    assert page["total"] == 2
    assert page["items"][0]["first_name"] == "Self"
    assert page["total_pages"] == 1


async def test_future_dob_is_rejected(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    user = create_user(db_session)
    db_session.commit()
    tomorrow = (utc_now().date() + timedelta(days=1)).isoformat()

    response = await async_client.post(
        BASE, json={"first_name": "Later", "dob": tomorrow}, headers=auth_headers(user, settings)
    )

    assert response.status_code == 400
    assert error_fields(response.json()) == {"dob"}


async def test_participants_are_private_to_their_owner(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    owner = create_user(db_session)
    other = create_user(db_session)
    participant = create_participant(db_session, user=owner)
    db_session.commit()

    response = await async_client.get(
        f"{BASE}/{participant.id}", headers=auth_headers(other, settings)
    )

    assert response.status_code == 404


async def test_update_participant(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    user = create_user(db_session)
    participant = create_participant(db_session, user=user)
    db_session.commit()

    response = await async_client.patch(
        f"{BASE}/{participant.id}",
        json={"school_name": "DPS", "disability": 1},
        headers=auth_headers(user, settings),
    )

    assert response.status_code == 200
    assert response.json()["data"]["school_name"] == "DPS"
    assert response.json()["data"]["disability"] == 1


async def test_self_participant_cannot_be_deleted(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    user = create_user(db_session)
    own = create_participant(db_session, user=user, is_self=True)
    child = create_participant(db_session, user=user)
    db_session.commit()
    headers = auth_headers(user, settings)

    blocked = await async_client.delete(f"{BASE}/{own.id}", headers=headers)
    deleted = await async_client.delete(f"{BASE}/{child.id}", headers=headers)

    assert blocked.status_code == 400
    assert deleted.status_code == 200
    missing = await async_client.get(f"{BASE}/{child.id}", headers=headers)
    assert missing.status_code == 404


async def test_academy_only_accounts_cannot_manage_participants(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    academy = create_user(db_session, roles=("academy",))
    db_session.commit()

    response = await async_client.get(BASE, headers=auth_headers(academy, settings))

    assert response.status_code == 403
