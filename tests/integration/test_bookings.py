from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.features.bookings.models import Booking
from academy_api.features.payments.models import Transaction
from academy_api.settings import Settings
from tests.fakes import FakePaymentGateway
from tests.utils import (
    Marketplace,
    auth_headers,
    book,
    book_and_pay,
    booking_selection,
    build_marketplace,
    create_batch,
    create_participant,
    create_user,
    years_ago,
)

pytestmark = pytest.mark.asyncio

USER = "/api/v1/user/bookings"
ACADEMY = "/api/v1/academy/bookings"
ADMIN = "/api/v1/admin/bookings"


@pytest.fixture()
def market(db_session: Session, settings: Settings) -> Marketplace:
    return build_marketplace(db_session, settings)


# ---- Summary and creation ----------------------------------------------------


async def test_summary_prices_the_selection(
    async_client: AsyncClient, market: Marketplace
) -> None:
    response = await async_client.post(
        f"{USER}/summary", json=booking_selection(market), headers=market.headers
    )

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["batch"]["id"] == str(market.batch.id)
    assert data["center"]["center_name"] == market.center.center_name
    assert [item["id"] for item in data["participants"]] == [str(market.participant.id)]
    breakdown = data["price_breakdown"]
    assert breakdown["admission_fee_per_participant"] == 500.0
    assert breakdown["base_fee_per_participant"] == 1800.0
    assert breakdown["batch_amount"] == 2300.0
    assert breakdown["gst_amount"] == 0.0
    assert breakdown["total_amount"] == 2300.0
    assert breakdown["participant_count"] == 1


async def test_create_booking_opens_a_razorpay_order(
    async_client: AsyncClient,
    db_session: Session,
    market: Marketplace,
    gateway: FakePaymentGateway,
) -> None:
    created = await book(async_client, market, notes="Evening slot please")

    booking = created["booking"]
    order = created["razorpay_order"]
    assert booking["booking_id"].startswith("PS-")
    assert booking["status"] == "pending"
    assert booking["amount"] == 2300.0
    assert booking["notes"] == "Evening slot please"
    assert booking["payment"]["status"] == "processing"
    assert booking["payment"]["razorpay_order_id"] == order["id"]
    assert order["amount"] == 230000
    assert order["currency"] == "INR"
    assert order["key_id"] == gateway.key_id
    assert gateway.orders[order["id"]]["receipt"] == booking["booking_id"]

    stored = db_session.execute(select(Booking)).scalar_one()
    assert stored.commission == {"rate": 0.1, "amount": 230.0, "payout_amount": 2070.0}


async def test_booking_ids_increase_within_the_year(
    async_client: AsyncClient, db_session: Session, market: Marketplace
) -> None:
    sibling = create_participant(db_session, user=market.student)
    db_session.commit()

    first = await book(async_client, market)
    response = await async_client.post(
        USER, json=booking_selection(market, sibling), headers=market.headers
    )

    assert response.status_code == 201, response.text
    first_seq = int(first["booking"]["booking_id"].rsplit("-", 1)[1])
    second_seq = int(response.json()["data"]["booking"]["booking_id"].rsplit("-", 1)[1])
    assert second_seq == first_seq + 1


async def test_gateway_failure_returns_bad_gateway_and_keeps_nothing(
    async_client: AsyncClient,
    db_session: Session,
    market: Marketplace,
    gateway: FakePaymentGateway,
) -> None:
    gateway.fail_orders = True

    response = await async_client.post(USER, json=booking_selection(market), headers=market.headers)

    assert response.status_code == 502
    assert response.json()["message"] == (
        "Payment order could not be created: Payment gateway unavailable"
    )
    assert db_session.execute(select(Booking)).first() is None


async def test_duplicate_participants_are_rejected(
    async_client: AsyncClient, market: Marketplace
) -> None:
    payload = booking_selection(market, market.participant, market.participant)

    response = await async_client.post(USER, json=payload, headers=market.headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


async def test_other_users_participants_are_forbidden(
    async_client: AsyncClient, db_session: Session, market: Marketplace
) -> None:
    stranger = create_user(db_session)
    theirs = create_participant(db_session, user=stranger)
    db_session.commit()

    response = await async_client.post(
        USER, json=booking_selection(market, theirs), headers=market.headers
    )

    assert response.status_code == 403


async def test_inactive_participants_are_not_found(
    async_client: AsyncClient, db_session: Session, market: Marketplace
) -> None:
    market.participant.is_active = False
    db_session.add(market.participant)
    db_session.commit()

    response = await async_client.post(USER, json=booking_selection(market), headers=market.headers)

    assert response.status_code == 404
    assert response.json()["message"] == "One or more participants not found or inactive"


async def test_unpublished_batch_is_not_bookable(
    async_client: AsyncClient, db_session: Session, market: Marketplace
) -> None:
    draft = create_batch(
        db_session,
        center=market.center,
        sport=market.sport,
        published=False,
    )
    db_session.commit()
    payload = {**booking_selection(market), "batch_id": str(draft.id)}

    response = await async_client.post(USER, json=payload, headers=market.headers)

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Batch is not published and not available for booking"
    )


async def test_inactive_center_is_not_bookable(
    async_client: AsyncClient, db_session: Session, market: Marketplace
) -> None:
    market.center.is_active = False
    db_session.add(market.center)
    db_session.commit()

    response = await async_client.post(USER, json=booking_selection(market), headers=market.headers)

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Coaching center is disabled and not available for booking"
    )


async def test_open_booking_blocks_reenrolment(
    async_client: AsyncClient, market: Marketplace
) -> None:
    await book(async_client, market)

    response = await async_client.post(USER, json=booking_selection(market), headers=market.headers)

    assert response.status_code == 400
    label = f"{market.participant.first_name} {market.participant.last_name}"
    assert response.json()["message"] == f"{label} is already enrolled in this batch"


async def test_cancelled_booking_frees_the_participant(
    async_client: AsyncClient, market: Marketplace
) -> None:
    created = await book(async_client, market)
    cancelled = await async_client.post(
        f"{USER}/{created['booking']['id']}/cancel", headers=market.headers
    )
    assert cancelled.status_code == 200, cancelled.text

    again = await async_client.post(USER, json=booking_selection(market), headers=market.headers)

    assert again.status_code == 201, again.text


async def test_capacity_is_enforced(
    async_client: AsyncClient, db_session: Session, market: Marketplace
) -> None:
    market.batch.capacity_max = 1
    db_session.add(market.batch)
    sibling = create_participant(db_session, user=market.student)
    db_session.commit()

    response = await async_client.post(
        USER,
        json=booking_selection(market, market.participant, sibling),
        headers=market.headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Insufficient slots available. Only 1 slot(s) remaining. Requested: 2"
    )


async def test_participant_age_must_fit_the_batch(
    async_client: AsyncClient, db_session: Session, market: Marketplace
) -> None:
    adult = create_participant(
        db_session, user=market.student, first_name="Asha", last_name="Rao", dob=years_ago(20)
    )
    db_session.commit()

    response = await async_client.post(
        USER, json=booking_selection(market, adult), headers=market.headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Participant Asha Rao age (20) is outside the batch age range (5-16 years)"
    )


async def test_academy_accounts_cannot_book(
    async_client: AsyncClient, market: Marketplace
) -> None:
    response = await async_client.post(
        USER, json=booking_selection(market), headers=market.owner_headers
    )

    assert response.status_code == 403


# ---- Payment verification ----------------------------------------------------


async def test_verified_payment_confirms_the_booking(
    async_client: AsyncClient,
    db_session: Session,
    market: Marketplace,
    gateway: FakePaymentGateway,
) -> None:
    booking = await book_and_pay(async_client, market, gateway)

    assert booking["status"] == "confirmed"
    assert booking["payment"]["status"] == "success"
    assert booking["payment"]["payment_method"] == "upi"
    assert booking["payment"]["paid_at"] is not None

    transaction = db_session.execute(select(Transaction)).scalar_one()
    assert transaction.type.value == "payment"
    assert transaction.status.value == "success"
    assert transaction.source.value == "user_verification"
    assert float(transaction.amount) == 2300.0


async def test_payment_cannot_be_verified_twice(
    async_client: AsyncClient, market: Marketplace, gateway: FakePaymentGateway
) -> None:
    booking = await book_and_pay(async_client, market, gateway)
    order_id = booking["payment"]["razorpay_order_id"]
    payment_id, signature = gateway.pay(order_id)

    response = await async_client.post(
        f"{USER}/{booking['id']}/verify-payment",
        json={
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        },
        headers=market.headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Payment has already been verified"


async def test_bad_signature_is_rejected(
    async_client: AsyncClient, market: Marketplace, gateway: FakePaymentGateway
) -> None:
    created = await book(async_client, market)
    order_id = created["razorpay_order"]["id"]
    payment_id, _ = gateway.pay(order_id)

    response = await async_client.post(
        f"{USER}/{created['booking']['id']}/verify-payment",
        json={
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": "0" * 64,
        },
        headers=market.headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid payment signature"


async def test_order_mismatch_is_rejected(
    async_client: AsyncClient, market: Marketplace, gateway: FakePaymentGateway
) -> None:
    created = await book(async_client, market)

    response = await async_client.post(
        f"{USER}/{created['booking']['id']}/verify-payment",
        json={
            "razorpay_order_id": "order_someone_else",
            "razorpay_payment_id": "pay_x",
            "razorpay_signature": "sig",
        },
        headers=market.headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Order id does not match this booking"


async def test_underpaid_capture_is_rejected(
    async_client: AsyncClient, market: Marketplace, gateway: FakePaymentGateway
) -> None:
    created = await book(async_client, market)
    order_id = created["razorpay_order"]["id"]
    payment_id, signature = gateway.pay(order_id, amount=100)

    response = await async_client.post(
        f"{USER}/{created['booking']['id']}/verify-payment",
        json={
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        },
        headers=market.headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Payment amount does not match the booking amount"


# ---- Cancellation and completion ---------------------------------------------


async def test_pending_booking_can_be_cancelled_with_reason(
    async_client: AsyncClient, market: Marketplace
) -> None:
    created = await book(async_client, market)

    response = await async_client.post(
        f"{USER}/{created['booking']['id']}/cancel",
        json={"reason": "Schedule clash"},
        headers=market.headers,
    )

    assert response.status_code == 200, response.text
    booking = response.json()["data"]
    assert booking["status"] == "cancelled"
    assert booking["payment"]["status"] == "cancelled"
    assert booking["cancellation_reason"] == "Schedule clash"
    assert booking["cancelled_at"] is not None

    again = await async_client.post(
        f"{USER}/{created['booking']['id']}/cancel", headers=market.headers
    )
    assert again.status_code == 400
    assert again.json()["message"] == "Booking is already cancelled"


async def test_paid_booking_cannot_be_cancelled(
    async_client: AsyncClient, market: Marketplace, gateway: FakePaymentGateway
) -> None:
    booking = await book_and_pay(async_client, market, gateway)

    response = await async_client.post(f"{USER}/{booking['id']}/cancel", headers=market.headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Confirmed or paid bookings cannot be cancelled"


async def test_bookings_are_private_to_their_owner(
    async_client: AsyncClient,
    db_session: Session,
    settings: Settings,
    market: Marketplace,
) -> None:
    created = await book(async_client, market)
    stranger = create_user(db_session)
    db_session.commit()

    response = await async_client.get(
        f"{USER}/{created['booking']['id']}", headers=auth_headers(stranger, settings)
    )

    assert response.status_code == 404


async def test_student_lists_bookings_with_status_filter(
    async_client: AsyncClient, db_session: Session, market: Marketplace
) -> None:
    sibling = create_participant(db_session, user=market.student)
    db_session.commit()
    first = await book(async_client, market)
    await async_client.post(
        USER, json=booking_selection(market, sibling), headers=market.headers
    )
    await async_client.post(f"{USER}/{first['booking']['id']}/cancel", headers=market.headers)

    everything = await async_client.get(USER, headers=market.headers)
    cancelled = await async_client.get(
        USER, params={"status": "cancelled"}, headers=market.headers
    )

    assert everything.json()["data"]["total"] == 2
    items = cancelled.json()["data"]["items"]
    assert [item["id"] for item in items] == [first["booking"]["id"]]


async def test_academy_sees_and_completes_its_bookings(
    async_client: AsyncClient, market: Marketplace, gateway: FakePaymentGateway
) -> None:
    booking = await book_and_pay(async_client, market, gateway)

    listing = await async_client.get(ACADEMY, headers=market.owner_headers)
    assert [item["id"] for item in listing.json()["data"]["items"]] == [booking["id"]]

    response = await async_client.patch(
        f"{ACADEMY}/{booking['id']}/complete", headers=market.owner_headers
    )

    assert response.status_code == 200, response.text
    assert response.json()["data"]["status"] == "completed"
    assert response.json()["data"]["completed_at"] is not None


async def test_only_confirmed_bookings_can_be_completed(
    async_client: AsyncClient, market: Marketplace
) -> None:
    created = await book(async_client, market)

    response = await async_client.patch(
        f"{ACADEMY}/{created['booking']['id']}/complete", headers=market.owner_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Only confirmed bookings can be marked as completed"


async def test_academy_cannot_see_other_centers_bookings(
    async_client: AsyncClient,
    db_session: Session,
    settings: Settings,
    market: Marketplace,
) -> None:
    created = await book(async_client, market)
    rival = create_user(db_session, roles=("academy",))
    db_session.commit()
    headers = auth_headers(rival, settings)

    listing = await async_client.get(ACADEMY, headers=headers)
    detail = await async_client.get(f"{ACADEMY}/{created['booking']['id']}", headers=headers)

    assert listing.json()["data"]["total"] == 0
    assert detail.status_code == 404


async def test_admin_booking_detail_includes_user_and_commission(
    async_client: AsyncClient,
    db_session: Session,
    settings: Settings,
    market: Marketplace,
) -> None:
    created = await book(async_client, market)
    employee = create_user(db_session, roles=("employee",))
    db_session.commit()
    headers = auth_headers(employee, settings)
    booking_code = created["booking"]["booking_id"]

    listing = await async_client.get(
        ADMIN, params={"search": booking_code.lower()}, headers=headers
    )
    detail = await async_client.get(f"{ADMIN}/{created['booking']['id']}", headers=headers)

    assert [item["booking_id"] for item in listing.json()["data"]["items"]] == [booking_code]
    data = detail.json()["data"]
    assert data["user"]["id"] == str(market.student.id)
    assert data["commission"]["payout_amount"] == 2070.0


async def test_students_cannot_use_admin_bookings(
    async_client: AsyncClient, market: Marketplace
) -> None:
    response = await async_client.get(ADMIN, headers=market.headers)

    assert response.status_code == 403
