from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from academy_api.common.validators import utc_now
from academy_api.features.centers.models import CoachingCenter
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
    schedule,
)

pytestmark = pytest.mark.asyncio

ACADEMY = "/api/v1/academy/batches"


@pytest.fixture()
def owner(db_session: Session) -> User:
    user = create_user(db_session, roles=("academy",))
    db_session.commit()
    return user


@pytest.fixture()
def sport(db_session: Session) -> Sport:
    sport = create_sport(db_session, "Tennis")
    db_session.commit()
    return sport


@pytest.fixture()
def center(db_session: Session, owner: User, sport: Sport) -> CoachingCenter:
    center = create_center(db_session, owner=owner, sports=[sport])
    db_session.commit()
    return center


def batch_payload(center: CoachingCenter, sport: Sport, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Evening juniors",
        "center_id": str(center.id),
        "sport_id": str(sport.id),
        "scheduled": schedule(),
        "duration": {"count": 3, "type": "month"},
        "capacity": {"min": 4, "max": 12},
        "age": {"min": 6, "max": 12},
        "admission_fee": "500.00",
        "base_price": "2500.00",
        "discounted_price": "2200.00",
        "fee_structure": {"fee_type": "monthly", "fee_configuration": {"amount": 2200.004}},
        "gender": ["male", "female"],
    }
    payload.update(overrides)
    return payload


async def test_create_batch(
    async_client: AsyncClient, owner: User, center: CoachingCenter, sport: Sport, settings: Settings
) -> None:
    response = await async_client.post(
        ACADEMY, json=batch_payload(center, sport), headers=auth_headers(owner, settings)
    )

    assert response.status_code == 201, response.text
    batch = response.json()["data"]
    assert batch["status"] == "draft"
    assert batch["capacity"] == {"min": 4, "max": 12}
    assert batch["base_price"] == 2500.0
    assert batch["fee_structure"] == {
        "fee_type": "monthly",
        "fee_configuration": {"amount": 2200.0},
    }


async def test_individual_timings_must_cover_training_days(
    async_client: AsyncClient, owner: User, center: CoachingCenter, sport: Sport, settings: Settings
) -> None:
    start = (utc_now().date() + timedelta(days=3)).isoformat()
    scheduled = {
        "start_date": start,
        "training_days": ["monday", "tuesday"],
        "individual_timings": [{"day": "monday", "start_time": "07:00", "end_time": "08:00"}],
    }

    response = await async_client.post(
        ACADEMY,
        json=batch_payload(center, sport, scheduled=scheduled),
        headers=auth_headers(owner, settings),
    )

    assert response.status_code == 400
    assert "scheduled" in error_fields(response.json())


async def test_common_and_individual_timings_are_exclusive(
    async_client: AsyncClient, owner: User, center: CoachingCenter, sport: Sport, settings: Settings
) -> None:
    scheduled = {
        **schedule(),
        "individual_timings": [{"day": "monday", "start_time": "07:00", "end_time": "08:00"}],
    }

    response = await async_client.post(
        ACADEMY,
        json=batch_payload(center, sport, scheduled=scheduled),
        headers=auth_headers(owner, settings),
    )

    assert response.status_code == 400


async def test_end_time_must_follow_start_time(
    async_client: AsyncClient, owner: User, center: CoachingCenter, sport: Sport, settings: Settings
) -> None:
    scheduled = {**schedule(), "start_time": "18:00", "end_time": "17:00"}

    response = await async_client.post(
        ACADEMY,
        json=batch_payload(center, sport, scheduled=scheduled),
        headers=auth_headers(owner, settings),
    )

    assert response.status_code == 400


async def test_discount_cannot_exceed_base_price(
    async_client: AsyncClient, owner: User, center: CoachingCenter, sport: Sport, settings: Settings
) -> None:
    response = await async_client.post(
        ACADEMY,
        json=batch_payload(center, sport, discounted_price="3000.00"),
        headers=auth_headers(owner, settings),
    )

    assert response.status_code == 400


async def test_capacity_and_age_ordering(
    async_client: AsyncClient, owner: User, center: CoachingCenter, sport: Sport, settings: Settings
) -> None:
    response = await async_client.post(
        ACADEMY,
        json=batch_payload(
            center, sport, capacity={"min": 10, "max": 5}, age={"min": 12, "max": 6}
        ),
        headers=auth_headers(owner, settings),
    )

    assert response.status_code == 400
    assert {"capacity", "age"} <= error_fields(response.json())


async def test_fee_configuration_is_checked_against_fee_type(
    async_client: AsyncClient, owner: User, center: CoachingCenter, sport: Sport, settings: Settings
) -> None:
    headers = auth_headers(owner, settings)
    invalid = await async_client.post(
        ACADEMY,
        json=batch_payload(
            center,
            sport,
            fee_structure={"fee_type": "monthly", "fee_configuration": {"billing_day": 40}},
        ),
        headers=headers,
    )
    unknown = await async_client.post(
        ACADEMY,
        json=batch_payload(center, sport, fee_structure={"fee_type": "yearly"}),
        headers=headers,
    )

    assert invalid.status_code == 400
    assert error_fields(invalid.json()) == {
        "fee_structure.fee_configuration.amount",
        "fee_structure.fee_configuration.billing_day",
    }
    assert error_fields(unknown.json()) == {"fee_structure.fee_type"}


async def test_sport_must_belong_to_center(
    async_client: AsyncClient,
    db_session: Session,
    owner: User,
    center: CoachingCenter,
    sport: Sport,
    settings: Settings,
) -> None:
    other_sport = create_sport(db_session, "Squash")
    db_session.commit()

    response = await async_client.post(
        ACADEMY,
        json=batch_payload(center, other_sport),
        headers=auth_headers(owner, settings),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Sport is not offered by this coaching center"


async def test_cannot_add_batches_to_foreign_center(
    async_client: AsyncClient,
    db_session: Session,
    center: CoachingCenter,
    sport: Sport,
    settings: Settings,
) -> None:
    stranger = create_user(db_session, roles=("academy",))
    db_session.commit()

    response = await async_client.post(
        ACADEMY, json=batch_payload(center, sport), headers=auth_headers(stranger, settings)
    )

    assert response.status_code == 404


async def test_update_and_list_batches(
    async_client: AsyncClient,
    db_session: Session,
    owner: User,
    center: CoachingCenter,
    sport: Sport,
    settings: Settings,
) -> None:
    batch = create_batch(db_session, center=center, sport=sport, published=False)
    db_session.commit()
    headers = auth_headers(owner, settings)

    updated = await async_client.patch(
        f"{ACADEMY}/{batch.id}",
        json={"status": "published", "capacity": {"min": 2, "max": 20}},
        headers=headers,
    )
    listed = await async_client.get(
        ACADEMY, params={"center_id": str(center.id), "status": "published"}, headers=headers
    )

    assert updated.status_code == 200
    assert updated.json()["data"]["capacity"] == {"min": 2, "max": 20}
    assert [item["id"] for item in listed.json()["data"]["items"]] == [str(batch.id)]


async def test_public_batches_for_center(
    async_client: AsyncClient, db_session: Session, center: CoachingCenter, sport: Sport
) -> None:
    visible = create_batch(db_session, center=center, sport=sport, name="A batch")
    create_batch(db_session, center=center, sport=sport, name="B batch", is_active=False)
    db_session.commit()

    response = await async_client.get(f"/api/v1/coaching-centers/{center.id}/batches")

    assert [item["id"] for item in response.json()["data"]] == [str(visible.id)]


async def test_admin_lists_batches_by_sport(
    async_client: AsyncClient,
    db_session: Session,
    center: CoachingCenter,
    sport: Sport,
    settings: Settings,
) -> None:
    employee = create_user(db_session, roles=("employee",))
    batch = create_batch(db_session, center=center, sport=sport)
    db_session.commit()

    response = await async_client.get(
        "/api/v1/admin/batches",
        params={"sport_id": str(sport.id)},
        headers=auth_headers(employee, settings),
    )

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["data"]["items"]] == [str(batch.id)]
