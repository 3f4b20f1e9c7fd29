from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.orm import Session

from academy_api.features.centers.models import ApprovalStatus
from academy_api.settings import Settings
from tests.fakes import FakePaymentGateway
from tests.utils import (
    Marketplace,
    auth_headers,
    book,
    book_and_pay,
    booking_selection,
    build_marketplace,
    create_center,
    create_participant,
    create_user,
)

pytestmark = pytest.mark.asyncio

ADMIN_STATS = "/api/v1/admin/dashboard/stats"
ACADEMY = "/api/v1/academy/dashboard"


@pytest.fixture()
def market(db_session: Session, settings: Settings) -> Marketplace:
    return build_marketplace(db_session, settings)


@pytest.fixture()
def admin_headers(db_session: Session, settings: Settings) -> dict[str, str]:
    admin = create_user(db_session, roles=("admin",))
    db_session.commit()
    return auth_headers(admin, settings)


@pytest_asyncio.fixture()
async def activity(
    async_client: AsyncClient,
    db_session: Session,
    market: Marketplace,
    gateway: FakePaymentGateway,
    admin_headers: dict[str, str],
) -> Marketplace:
    """One paid booking with a partial refund, one unpaid booking and a draft center."""

    paid = await book_and_pay(async_client, market, gateway)
    refund = await async_client.post(
        f"/api/v1/admin/bookings/{paid['id']}/refund",
        json={"amount": 1000},
        headers=admin_headers,
    )
    assert refund.status_code == 200, refund.text

    sibling = create_participant(db_session, user=market.student)
    create_center(
        db_session,
        owner=market.owner,
        sports=[market.sport],
        published=False,
        approval_status=ApprovalStatus.PENDING,
    )
    db_session.commit()
    await book(async_client, market, **booking_selection(market, sibling))
    return market


async def test_admin_stats_summarise_the_platform(
    async_client: AsyncClient, activity: Marketplace, admin_headers: dict[str, str]
) -> None:
    response = await async_client.get(ADMIN_STATS, headers=admin_headers)

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    # Seeded super admin, the admin, the student and the academy owner.
    assert data["users"] == {"total": 4, "active": 4, "students": 1, "academies": 1}
    assert data["coaching_centers"] == {
        "total": 2,
        "active": 2,
        "published": 1,
        "pending_approval": 1,
    }
    assert data["batches"] == {"total": 1, "active": 1}
    assert data["participants"] == {"total": 2, "active": 2}
    assert data["bookings"]["total"] == 2
    assert data["bookings"]["by_status"] == {
        "pending": 1,
        "confirmed": 1,
        "cancelled": 0,
        "completed": 0,
    }
    assert data["revenue"] == {"total": 1300.0, "current_month": 1300.0, "refunds": 1000.0}


async def test_employees_can_view_admin_stats(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    employee = create_user(db_session, roles=("employee",))
    db_session.commit()

    response = await async_client.get(ADMIN_STATS, headers=auth_headers(employee, settings))

    assert response.status_code == 200
    assert response.json()["data"]["bookings"]["total"] == 0


async def test_students_cannot_view_admin_stats(
    async_client: AsyncClient, market: Marketplace
) -> None:
    response = await async_client.get(ADMIN_STATS, headers=market.headers)

    assert response.status_code == 403


async def test_academy_dashboard_reports_payouts(
    async_client: AsyncClient, activity: Marketplace
) -> None:
    response = await async_client.get(ACADEMY, headers=activity.owner_headers)

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["coaching_centers"] == {"total": 2, "active": 2}
    assert data["batches"] == {"total": 1, "active": 1}
    assert data["bookings"]["total"] == 2
    assert data["bookings"]["by_status"]["confirmed"] == 1
    assert data["revenue"] == {"gross": 2300.0, "payout": 2070.0, "current_month_payout": 2070.0}


async def test_academy_dashboard_is_scoped_to_the_owner(
    async_client: AsyncClient,
    db_session: Session,
    settings: Settings,
    activity: Marketplace,
) -> None:
    rival = create_user(db_session, roles=("academy",))
    db_session.commit()

    response = await async_client.get(ACADEMY, headers=auth_headers(rival, settings))

    data = response.json()["data"]
    assert data["coaching_centers"] == {"total": 0, "active": 0}
    assert data["bookings"]["total"] == 0
    assert data["revenue"] == {"gross": 0.0, "payout": 0.0, "current_month_payout": 0.0}


async def test_students_cannot_open_academy_dashboard(
    async_client: AsyncClient, market: Marketplace
) -> None:
    response = await async_client.get(ACADEMY, headers=market.headers)

    assert response.status_code == 403
