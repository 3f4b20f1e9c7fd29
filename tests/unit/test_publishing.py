from __future__ import annotations

from typing import Any

from academy_api.features.centers.publishing import publish_violations


def complete(**overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "center_name": "Smash Academy",
        "mobile_number": "9876543210",
        "email": "hello@smash.example.com",
        "sport_ids": ["sport-1"],
        "logo": "https://cdn.example.com/logo.png",
        "age": {"min": 5, "max": 16},
        "location": {
            "latitude": 12.97,
            "longitude": 77.59,
            "address": {"line1": "MG Road", "line2": "Near metro"},
        },
        "operational_timing": {"operating_days": ["monday"]},
        "bank_information": None,
        "requires_bank_information": False,
    }
    values.update(overrides)
    return values


def fields(**overrides: Any) -> set[str]:
    return {item.field for item in publish_violations(**complete(**overrides))}


def test_complete_center_is_publishable() -> None:
    assert publish_violations(**complete()) == []


def test_every_missing_field_is_reported() -> None:
    problems = fields(
        center_name="  ",
        mobile_number=None,
        email=None,
        sport_ids=[],
        logo=None,
        age=None,
        location=None,
        operational_timing=None,
    )

    assert problems == {
        "center_name",
        "mobile_number",
        "email",
        "sports",
        "logo",
        "age",
        "location.latitude",
        "location.longitude",
        "location.address.line2",
        "operational_timing",
    }


def test_malformed_contact_details_are_rejected() -> None:
    assert fields(mobile_number="12345") == {"mobile_number"}
    assert fields(email="not-an-email") == {"email"}


def test_boolean_coordinates_do_not_count() -> None:
    location = {"latitude": True, "longitude": 0, "address": {"line2": "x"}}
    assert fields(location=location) == {"location.latitude"}


def test_half_age_range_is_incomplete() -> None:
    assert fields(age={"min": 5, "max": None}) == {"age"}


def test_academy_owned_center_needs_bank_information() -> None:
    assert fields(requires_bank_information=True) == {"bank_information"}
    assert fields(
        requires_bank_information=True,
        bank_information={"account_number": "1234567890", "ifsc_code": "HDFC0001234"},
    ) == set()
