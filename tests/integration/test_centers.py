from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from academy_api.features.sports.models import Sport
from academy_api.features.users.models import User
from academy_api.settings import Settings
from tests.utils import (
    auth_headers,
    create_batch,
    create_center,
    create_sport,
    create_user,
    error_fields,
)

pytestmark = pytest.mark.asyncio

ACADEMY = "/api/v1/academy/coaching-centers"
ADMIN = "/api/v1/admin/coaching-centers"
PUBLIC = "/api/v1/coaching-centers"

BANK = {
    "bank_name": "HDFC Bank",
    "account_number": "123456789012",
    "ifsc_code": "hdfc0001234",
    "account_holder_name": "Sunrise Sports LLP",
}


def center_payload(sport: Sport, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "center_name": "Sunrise Sports",
        "mobile_number": "9876543210",
        "email": "hello@sunrise.example.com",
        "logo": "https://cdn.example.com/sunrise.png",
        "sports": [str(sport.id)],
        "age": {"min": 5, "max": 16},
        "location": {
            "latitude": 19.07,
            "longitude": 72.87,
            "address": {"line1": "Linking Road", "line2": "Bandra West", "pincode": "400050"},
        },
        "operational_timing": {
            "operating_days": ["monday", "saturday"],
            "opening_time": "06:00",
            "closing_time": "21:00",
        },
        "bank_information": BANK,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def academy(db_session: Session) -> User:
    user = create_user(db_session, roles=("academy",))
    db_session.commit()
    return user


@pytest.fixture()
def sport(db_session: Session) -> Sport:
    sport = create_sport(db_session, "Swimming")
    db_session.commit()
    return sport


async def test_academy_creates_draft_center(
    async_client: AsyncClient, academy: User, settings: Settings
) -> None:
    response = await async_client.post(
        ACADEMY,
        json={"center_name": "Work in progress"},
        headers=auth_headers(academy, settings),
    )

    assert response.status_code == 201, response.text
    center = response.json()["data"]
    assert center["status"] == "draft"
    assert center["approval_status"] == "pending_approval"
    assert center["owner_id"] == str(academy.id)
    assert center["allowed_genders"] == ["male", "female", "other"]


async def test_publishing_incomplete_center_lists_every_gap(
    async_client: AsyncClient, academy: User, settings: Settings
) -> None:
    response = await async_client.post(
        ACADEMY,
        json={"center_name": "Half done", "status": "published"},
        headers=auth_headers(academy, settings),
    )

    assert response.status_code == 400
    assert error_fields(response.json()) == {
        "mobile_number",
        "email",
        "sports",
        "logo",
        "age",
        "location.latitude",
        "location.longitude",
        "location.address.line2",
        "operational_timing",
        "bank_information",
    }


async def test_complete_center_can_be_published(
    async_client: AsyncClient, academy: User, sport: Sport, settings: Settings
) -> None:
    response = await async_client.post(
        ACADEMY,
        json=center_payload(sport, status="published"),
        headers=auth_headers(academy, settings),
    )

    assert response.status_code == 201, response.text
    center = response.json()["data"]
    assert center["status"] == "published"
    assert center["bank_information"]["ifsc_code"] == "HDFC0001234"
    assert [item["id"] for item in center["sports"]] == [str(sport.id)]
    assert center["age"] == {"min": 5, "max": 16}


async def test_publish_rule_applies_on_update(
    async_client: AsyncClient, academy: User, sport: Sport, settings: Settings
) -> None:
    headers = auth_headers(academy, settings)
    created = await async_client.post(
        ACADEMY, json=center_payload(sport, logo=None), headers=headers
    )
    center_id = created.json()["data"]["id"]

    blocked = await async_client.patch(
        f"{ACADEMY}/{center_id}", json={"status": "published"}, headers=headers
    )
    assert blocked.status_code == 400
    assert error_fields(blocked.json()) == {"logo"}

    published = await async_client.patch(
        f"{ACADEMY}/{center_id}",
        json={"status": "published", "logo": "https://cdn.example.com/new.png"},
        headers=headers,
    )
    assert published.status_code == 200


async def test_age_range_bounds_are_validated(
    async_client: AsyncClient, academy: User, sport: Sport, settings: Settings
) -> None:
    response = await async_client.post(
        ACADEMY,
        json=center_payload(sport, age={"min": 2, "max": 30}),
        headers=auth_headers(academy, settings),
    )

    assert response.status_code == 400
    assert {"age.min", "age.max"} <= error_fields(response.json())


async def test_unknown_sport_is_rejected(
    async_client: AsyncClient, academy: User, sport: Sport, settings: Settings
) -> None:
    payload = center_payload(sport, sports=["00000000-0000-0000-0000-000000000001"])

    headers = auth_headers(academy, settings)
    response = await async_client.post(ACADEMY, json=payload, headers=headers)

    assert response.status_code == 400


async def test_new_facilities_are_created_by_name(
    async_client: AsyncClient, academy: User, sport: Sport, settings: Settings
) -> None:
    payload = center_payload(sport, facilities=[{"name": "Changing Room"}])

    headers = auth_headers(academy, settings)
    response = await async_client.post(ACADEMY, json=payload, headers=headers)

    assert response.status_code == 201
    assert [item["name"] for item in response.json()["data"]["facilities"]] == ["Changing Room"]


async def test_academy_only_sees_own_centers(
    async_client: AsyncClient,
    db_session: Session,
    academy: User,
    sport: Sport,
    settings: Settings,
) -> None:
    other_owner = create_user(db_session, roles=("academy",))
    mine = create_center(db_session, owner=academy, sports=[sport])
    theirs = create_center(db_session, owner=other_owner, sports=[sport])
    db_session.commit()
    headers = auth_headers(academy, settings)

    listed = await async_client.get(ACADEMY, headers=headers)
    foreign = await async_client.get(f"{ACADEMY}/{theirs.id}", headers=headers)

    assert [item["id"] for item in listed.json()["data"]["items"]] == [str(mine.id)]
    assert foreign.status_code == 404


async def test_public_listing_shows_only_published_active_centers(
    async_client: AsyncClient, db_session: Session, academy: User, sport: Sport
) -> None:
    visible = create_center(db_session, owner=academy, sports=[sport], center_name="Alpha")
    create_center(db_session, owner=academy, sports=[sport], published=False, center_name="Beta")
    create_center(db_session, owner=academy, sports=[sport], is_active=False, center_name="Gamma")
    db_session.commit()

    response = await async_client.get(PUBLIC)

    assert [item["id"] for item in response.json()["data"]["items"]] == [str(visible.id)]
    assert "bank_information" not in response.json()["data"]["items"][0]


async def test_public_detail_includes_published_batches(
    async_client: AsyncClient, db_session: Session, academy: User, sport: Sport
) -> None:
    center = create_center(db_session, owner=academy, sports=[sport])
    published = create_batch(db_session, center=center, sport=sport)
    create_batch(db_session, center=center, sport=sport, published=False)
    db_session.commit()

    response = await async_client.get(f"{PUBLIC}/{center.id}")

    assert response.status_code == 200
    assert [batch["id"] for batch in response.json()["data"]["batches"]] == [str(published.id)]


async def test_draft_center_is_hidden_publicly(
    async_client: AsyncClient, db_session: Session, academy: User, sport: Sport
) -> None:
    center = create_center(db_session, owner=academy, sports=[sport], published=False)
    db_session.commit()

    response = await async_client.get(f"{PUBLIC}/{center.id}")

    assert response.status_code == 404


async def test_admin_rejection_requires_reason(
    async_client: AsyncClient,
    db_session: Session,
    academy: User,
    sport: Sport,
    settings: Settings,
) -> None:
    admin = create_user(db_session, roles=("admin",))
    center = create_center(db_session, owner=academy, sports=[sport])
    db_session.commit()
    headers = auth_headers(admin, settings)

    missing = await async_client.patch(
        f"{ADMIN}/{center.id}/approval", json={"approval_status": "rejected"}, headers=headers
    )
    rejected = await async_client.patch(
        f"{ADMIN}/{center.id}/approval",
        json={"approval_status": "rejected", "rejection_reason": "Blurry documents"},
        headers=headers,
    )

    assert missing.status_code == 400
    assert rejected.status_code == 200
    assert rejected.json()["data"]["rejection_reason"] == "Blurry documents"


async def test_admin_deactivation_and_filters(
    async_client: AsyncClient,
    db_session: Session,
    academy: User,
    sport: Sport,
    settings: Settings,
) -> None:
    admin = create_user(db_session, roles=("admin",))
    center = create_center(db_session, owner=academy, sports=[sport])
    db_session.commit()
    headers = auth_headers(admin, settings)

    deactivated = await async_client.patch(
        f"{ADMIN}/{center.id}/status", json={"is_active": False}, headers=headers
    )
    inactive = await async_client.get(ADMIN, params={"is_active": "false"}, headers=headers)

    assert deactivated.json()["message"] == "Coaching center deactivated"
    assert [item["id"] for item in inactive.json()["data"]["items"]] == [str(center.id)]


async def test_deleting_center_soft_deletes_batches(
    async_client: AsyncClient,
    db_session: Session,
    academy: User,
    sport: Sport,
    settings: Settings,
) -> None:
    center = create_center(db_session, owner=academy, sports=[sport])
    batch = create_batch(db_session, center=center, sport=sport)
    db_session.commit()

    response = await async_client.delete(
        f"{ACADEMY}/{center.id}", headers=auth_headers(academy, settings)
    )

    assert response.status_code == 200
    db_session.expire_all()
    assert center.is_deleted is True
    assert batch.is_deleted is True
