"""Booking eligibility rules and payment state transitions.

Functions here only read attributes, so they work on ORM rows and on plain
objects alike. Each check returns a human-readable reason, or ``None`` when
the booking may proceed.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from academy_api.common.validators import calculate_age

from .models import PaymentStatus

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.PROCESSING, PaymentStatus.CANCELLED, PaymentStatus.FAILED}
    ),
    PaymentStatus.PROCESSING: frozenset(
        {PaymentStatus.SUCCESS, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
    ),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PROCESSING, PaymentStatus.CANCELLED}),
    PaymentStatus.SUCCESS: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
}


def can_transition(current: PaymentStatus | str, target: PaymentStatus | str) -> bool:
    return PaymentStatus(target) in PAYMENT_TRANSITIONS[PaymentStatus(current)]


def _value(item: Any) -> str:
    return str(item.value if isinstance(item, Enum) else item).lower()


def participant_label(participant: Any) -> str:
    name = " ".join(
        part for part in (participant.first_name, participant.last_name) if part
    ).strip()
    return name or str(participant.id)


def capacity_problem(capacity_max: int | None, booked: int, requested: int) -> str | None:
    if capacity_max is None or booked + requested <= capacity_max:
        return None
    remaining = max(capacity_max - booked, 0)
    return (
        f"Insufficient slots available. Only {remaining} slot(s) remaining. "
        f"Requested: {requested}"
    )


def eligibility_problem(
    participant: Any,
    *,
    batch: Any,
    center: Any,
    today: date | None = None,
) -> str | None:
    label = participant_label(participant)
    if participant.dob is None:
        return f"Participant {label} does not have a date of birth"

    age = calculate_age(participant.dob, today)
    if age < batch.age_min or age > batch.age_max:
        return (
            f"Participant {label} age ({age}) is outside the batch age range "
            f"({batch.age_min}-{batch.age_max} years)"
        )
    if center.age_min is not None and center.age_max is not None:
        if age < center.age_min or age > center.age_max:
            return (
                f"Participant {label} age ({age}) is outside the coaching center age range "
                f"({center.age_min}-{center.age_max} years)"
            )

    if participant.gender:
        gender = _value(participant.gender)
        batch_genders = [_value(item) for item in batch.gender or []]
        if batch_genders and gender not in batch_genders:
            return f"Participant {label} gender ({gender}) is not allowed for this batch"
        center_genders = [_value(item) for item in center.allowed_genders or []]
        if center_genders and gender not in center_genders:
            return (
                f"Participant {label} gender ({gender}) is not allowed by the coaching center"
            )

    disabled = bool(participant.disability)
    if disabled and not batch.is_allowed_disabled:
        return (
            f"Participant {label} has a disability. "
            "This batch does not allow disabled participants"
        )
    if center.is_only_for_disabled and not disabled:
        return (
            f"Participant {label} does not have a disability. "
            "This coaching center is exclusively for disabled participants"
        )
    if disabled and not center.allowed_disabled and not center.is_only_for_disabled:
        return (
            f"Participant {label} has a disability. "
            "This coaching center does not allow disabled participants"
        )
    return None


__all__ = [
    "PAYMENT_TRANSITIONS",
    "can_transition",
    "capacity_problem",
    "eligibility_problem",
    "participant_label",
]
