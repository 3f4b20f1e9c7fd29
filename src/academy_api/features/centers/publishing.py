"""Completeness rule applied before a coaching center can be published."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from academy_api.common.errors import ErrorItem
from academy_api.common.validators import MOBILE_PATTERN

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _has_coordinate(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def publish_violations(
    *,
    center_name: str | None,
    mobile_number: str | None,
    email: str | None,
    sport_ids: Sequence[Any],
    logo: str | None,
    age: Mapping[str, Any] | None,
    location: Mapping[str, Any] | None,
    operational_timing: Mapping[str, Any] | None,
    bank_information: Mapping[str, Any] | None,
    requires_bank_information: bool,
) -> list[ErrorItem]:
    """Return every field that blocks publishing; an empty list means publishable."""

    problems: list[ErrorItem] = []

    def missing(field: str, message: str) -> None:
        problems.append(ErrorItem(field=field, message=message))

    if not (center_name or "").strip():
        missing("center_name", "Center name is required")
    if not mobile_number:
        missing("mobile_number", "Mobile number is required")
    elif not MOBILE_PATTERN.match(mobile_number):
        missing("mobile_number", "Mobile number must be a valid 10-digit Indian number")
    if not email:
        missing("email", "Email is required")
    elif not EMAIL_PATTERN.match(email):
        missing("email", "Email is invalid")
    if not sport_ids:
        missing("sports", "At least one sport is required")
    if not logo:
        missing("logo", "Logo is required")
    if not age or age.get("min") is None or age.get("max") is None:
        missing("age", "Age range is required")

    location = location or {}
    address = location.get("address") or {}
    if not _has_coordinate(location.get("latitude")):
        missing("location.latitude", "Latitude is required")
    if not _has_coordinate(location.get("longitude")):
        missing("location.longitude", "Longitude is required")
    if not (address.get("line2") or "").strip():
        missing("location.address.line2", "Address line 2 is required")

    if not operational_timing:
        missing("operational_timing", "Operational timing is required")
    if requires_bank_information and not bank_information:
        missing("bank_information", "Bank information is required")
    return problems


__all__ = ["EMAIL_PATTERN", "publish_violations"]
