from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from uuid import uuid4

import pytest

from academy_api.features.bookings.models import PaymentStatus
from academy_api.features.bookings.service import format_booking_id
from academy_api.features.bookings.validation import (
    can_transition,
    capacity_problem,
    eligibility_problem,
    participant_label,
)

TODAY = date(2026, 10, 18)


def participant(**overrides) -> SimpleNamespace:
    values = {
        "id": uuid4(),
        "first_name": "Asha",
        "last_name": "Rao",
        "dob": date(2016, 5, 1),
        "gender": "female",
        "disability": 0,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def batch(**overrides) -> SimpleNamespace:
    values = {"age_min": 6, "age_max": 12, "gender": [], "is_allowed_disabled": False}
    values.update(overrides)
    return SimpleNamespace(**values)


def center(**overrides) -> SimpleNamespace:
    values = {
        "age_min": None,
        "age_max": None,
        "allowed_genders": ["male", "female", "other"],
        "allowed_disabled": False,
        "is_only_for_disabled": False,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def check(p=None, b=None, c=None) -> str | None:
    return eligibility_problem(
        p or participant(), batch=b or batch(), center=c or center(), today=TODAY
    )


def test_eligible_participant_passes() -> None:
    assert check() is None


def test_missing_dob_is_rejected() -> None:
    assert "does not have a date of birth" in check(participant(dob=None))


def test_batch_age_range_is_enforced() -> None:
    problem = check(participant(dob=date(2004, 1, 1)))
    assert problem == (
        "Participant Asha Rao age (22) is outside the batch age range (6-12 years)"
    )


def test_center_age_range_is_enforced_when_set() -> None:
    problem = check(c=center(age_min=11, age_max=14))
    assert "coaching center age range (11-14 years)" in problem


def test_batch_gender_list_is_enforced() -> None:
    problem = check(b=batch(gender=["male"]))
    assert problem == "Participant Asha Rao gender (female) is not allowed for this batch"


def test_center_gender_list_is_enforced() -> None:
    problem = check(c=center(allowed_genders=["male"]))
    assert "not allowed by the coaching center" in problem


def test_disabled_participant_needs_batch_permission() -> None:
    problem = check(participant(disability=1))
    assert "This batch does not allow disabled participants" in problem


def test_disabled_participant_needs_center_permission() -> None:
    problem = check(participant(disability=1), b=batch(is_allowed_disabled=True))
    assert "This coaching center does not allow disabled participants" in problem


def test_disabled_only_center_rejects_others() -> None:
    problem = check(c=center(is_only_for_disabled=True))
    assert "exclusively for disabled participants" in problem


def test_disabled_only_center_accepts_disabled_participant() -> None:
    result = check(
        participant(disability=1),
        b=batch(is_allowed_disabled=True),
        c=center(is_only_for_disabled=True),
    )
    assert result is None


def test_participant_label_falls_back_to_id() -> None:
    anonymous = participant(first_name=None, last_name=None)
    assert participant_label(anonymous) == str(anonymous.id)


def test_capacity_problem_reports_remaining_slots() -> None:
    assert capacity_problem(None, 100, 5) is None
    assert capacity_problem(10, 8, 2) is None
    assert capacity_problem(10, 9, 2) == (
        "Insufficient slots available. Only 1 slot(s) remaining. Requested: 2"
    )


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (PaymentStatus.PENDING, PaymentStatus.PROCESSING, True),
        (PaymentStatus.PROCESSING, PaymentStatus.SUCCESS, True),
        (PaymentStatus.FAILED, PaymentStatus.PROCESSING, True),
        (PaymentStatus.SUCCESS, PaymentStatus.REFUNDED, True),
        (PaymentStatus.SUCCESS, PaymentStatus.CANCELLED, False),
        (PaymentStatus.PENDING, PaymentStatus.SUCCESS, False),
        (PaymentStatus.REFUNDED, PaymentStatus.SUCCESS, False),
        ("cancelled", "processing", False),
    ],
)
def test_payment_transitions(current, target, allowed: bool) -> None:
    assert can_transition(current, target) is allowed


def test_booking_id_format() -> None:
    assert format_booking_id(2026, 7) == "PS-2026-0007"
    assert format_booking_id(2026, 12345) == "PS-2026-12345"
