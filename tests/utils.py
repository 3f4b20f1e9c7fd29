"""Factories and request helpers shared across tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.common.validators import utc_now
from academy_api.core.security.hashing import hash_password
from academy_api.core.security.tokens import create_access_token
from academy_api.features.auth.service import primary_role
from academy_api.features.batches.models import Batch
from academy_api.features.centers.models import ApprovalStatus, CoachingCenter, PublishStatus
from academy_api.features.participants.models import Participant
from academy_api.features.rbac.models import Role
from academy_api.features.sports.models import Sport
from academy_api.features.users.models import Gender, RegistrationMethod, User
from academy_api.settings import Settings

DEFAULT_PASSWORD = "Passw0rd@123"
_mobile_counter = iter(range(10_000, 99_999))


def next_mobile() -> str:
    return f"98765{next(_mobile_counter):05d}"


def create_user(
    session: Session,
    *,
    roles: tuple[str, ...] = ("user",),
    email: str | None = None,
    mobile: str | None = None,
    password: str | None = DEFAULT_PASSWORD,
    first_name: str = "Test",
    last_name: str | None = "User",
    **fields: Any,
) -> User:
    suffix = uuid4().hex[:8]
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email or f"user-{suffix}@example.com",
        mobile=mobile or next_mobile(),
        password_hash=hash_password(password) if password else None,
        registration_method=RegistrationMethod.MOBILE,
        favorite_sport_ids=[],
        **fields,
    )
    user.roles = list(session.execute(select(Role).where(Role.name.in_(roles))).scalars())
    assert len(user.roles) == len(roles), f"unknown roles in {roles}"
    session.add(user)
    session.flush()
    return user


def auth_headers(user: User, settings: Settings) -> dict[str, str]:
    issued = create_access_token(
        user_id=user.id,
        email=user.email,
        role=primary_role(user),
        roles=user.role_names,
        settings=settings,
    )
    return {"Authorization": f"Bearer {issued.token}"}


def create_sport(session: Session, name: str | None = None) -> Sport:
    name = name or f"Sport {uuid4().hex[:6]}"
    slug = name.lower().replace(" ", "-")
    sport = Sport(name=name, name_canonical=name.lower(), slug=slug)
    session.add(sport)
    session.flush()
    return sport


def complete_center_fields() -> dict[str, Any]:
    return {
        "mobile_number": "9876543210",
        "email": "center@example.com",
        "logo": "https://cdn.example.com/logo.png",
        "age_min": 5,
        "age_max": 16,
        "location": {
            "latitude": 28.61,
            "longitude": 77.2,
            "address": {"line1": "Block A", "line2": "Sector 5", "city": "Delhi"},
        },
        "operational_timing": {
            "operating_days": ["monday", "tuesday", "wednesday"],
            "opening_time": "06:00",
            "closing_time": "20:00",
        },
    }


def create_center(
    session: Session,
    *,
    owner: User | None,
    sports: list[Sport],
    published: bool = True,
    **overrides: Any,
) -> CoachingCenter:
    values: dict[str, Any] = {
        "center_name": f"Center {uuid4().hex[:6]}",
        "rules": [],
        "sport_details": [],
        "documents": [],
        "allowed_genders": [gender.value for gender in Gender],
        "status": PublishStatus.PUBLISHED if published else PublishStatus.DRAFT,
        "approval_status": ApprovalStatus.APPROVED,
        **complete_center_fields(),
    }
    values.update(overrides)
    center = CoachingCenter(owner_id=owner.id if owner else None, **values)
    center.sports = list(sports)
    session.add(center)
    session.flush()
    return center


def schedule(start: date | None = None) -> dict[str, Any]:
    start = start or (utc_now().date() + timedelta(days=7))
    return {
        "start_date": start.isoformat(),
        "start_time": "17:00",
        "end_time": "18:30",
        "training_days": ["monday", "wednesday", "friday"],
    }


def create_batch(
    session: Session,
    *,
    center: CoachingCenter,
    sport: Sport,
    published: bool = True,
    **overrides: Any,
) -> Batch:
    values: dict[str, Any] = {
        "name": f"Batch {uuid4().hex[:6]}",
        "scheduled": schedule(),
        "duration": {"count": 3, "type": "month"},
        "capacity_min": 1,
        "capacity_max": 10,
        "age_min": 5,
        "age_max": 16,
        "admission_fee": Decimal("500.00"),
        "base_price": Decimal("2000.00"),
        "discounted_price": Decimal("1800.00"),
        "gender": [],
        "status": PublishStatus.PUBLISHED if published else PublishStatus.DRAFT,
    }
    values.update(overrides)
    batch = Batch(center_id=center.id, sport_id=sport.id, **values)
    session.add(batch)
    session.flush()
    return batch


def years_ago(years: int) -> date:
    today = utc_now().date()
    return today.replace(year=today.year - years, day=min(today.day, 28))


def create_participant(session: Session, *, user: User, **overrides: Any) -> Participant:
    values: dict[str, Any] = {
        "first_name": "Kid",
        "last_name": uuid4().hex[:5],
        "gender": Gender.MALE,
        "dob": years_ago(10),
        "disability": 0,
    }
    values.update(overrides)
    participant = Participant(user_id=user.id, **values)
    session.add(participant)
    session.flush()
    return participant


@dataclass
class Marketplace:
    """A student with one participant and a bookable batch at an academy's center."""

    student: User
    owner: User
    sport: Sport
    center: CoachingCenter
    batch: Batch
    participant: Participant
    headers: dict[str, str]
    owner_headers: dict[str, str]


def build_marketplace(session: Session, settings: Settings) -> Marketplace:
    student = create_user(session, roles=("user",))
    owner = create_user(session, roles=("academy",))
    sport = create_sport(session)
    center = create_center(session, owner=owner, sports=[sport])
    batch = create_batch(session, center=center, sport=sport)
    participant = create_participant(session, user=student)
    session.commit()
    return Marketplace(
        student=student,
        owner=owner,
        sport=sport,
        center=center,
        batch=batch,
        participant=participant,
        headers=auth_headers(student, settings),
        owner_headers=auth_headers(owner, settings),
    )


def booking_selection(market: Marketplace, *participants: Participant) -> dict[str, Any]:
    chosen = participants or (market.participant,)
    return {
        "batch_id": str(market.batch.id),
        "participant_ids": [str(participant.id) for participant in chosen],
    }


async def book(client: AsyncClient, market: Marketplace, **extra: Any) -> dict[str, Any]:
    payload = {**booking_selection(market), **extra}
    response = await client.post("/api/v1/user/bookings", json=payload, headers=market.headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def book_and_pay(client: AsyncClient, market: Marketplace, gateway: Any) -> dict[str, Any]:
    """Create a booking and verify a captured checkout for it."""

    created = await book(client, market)
    order_id = created["razorpay_order"]["id"]
    payment_id, signature = gateway.pay(order_id)
    response = await client.post(
        f"/api/v1/user/bookings/{created['booking']['id']}/verify-payment",
        json={
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        },
        headers=market.headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


def error_fields(payload: dict[str, Any]) -> set[str]:
    return {item["field"] for item in payload.get("errors") or []}


__all__ = [
    "DEFAULT_PASSWORD",
    "Marketplace",
    "auth_headers",
    "book",
    "book_and_pay",
    "booking_selection",
    "build_marketplace",
    "complete_center_fields",
    "create_batch",
    "create_center",
    "create_participant",
    "create_sport",
    "create_user",
    "error_fields",
    "next_mobile",
    "schedule",
    "years_ago",
]
