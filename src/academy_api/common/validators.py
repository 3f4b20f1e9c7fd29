"""Reusable field validators for request schemas."""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from typing import Annotated

from pydantic import AfterValidator

MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&#])[A-Za-z\d@$!%*?&#]{8,}$"
)
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
PINCODE_PATTERN = re.compile(r"^\d{6}$")


def utc_now() -> datetime:
    return datetime.now(UTC)


def validate_mobile(value: str) -> str:
    cleaned = value.strip()
    if not MOBILE_PATTERN.match(cleaned):
        raise ValueError("Mobile number must be a valid 10-digit Indian number")
    return cleaned


def validate_password(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(
            "Password must be at least 8 characters and include upper and lower case "
            "letters, a number and a special character (@$!%*?&#)"
        )
    return value


def validate_time(value: str) -> str:
    cleaned = value.strip()
    if not TIME_PATTERN.match(cleaned):
        raise ValueError("Time must be in HH:MM format")
    return cleaned


def validate_slug(value: str) -> str:
    cleaned = value.strip().lower()
    if not SLUG_PATTERN.match(cleaned):
        raise ValueError("Slug can only contain lowercase letters, numbers, and hyphens")
    return cleaned


def validate_ifsc(value: str) -> str:
    cleaned = value.strip().upper()
    if not IFSC_PATTERN.match(cleaned):
        raise ValueError("Invalid IFSC code")
    return cleaned


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":", 1)
    return int(hours) * 60 + int(minutes)


def calculate_age(dob: date, today: date | None = None) -> int:
    """Whole years between ``dob`` and ``today``."""

    current = today or utc_now().date()
    age = current.year - dob.year
    if (current.month, current.day) < (dob.month, dob.day):
        age -= 1
    return age


MobileNumber = Annotated[str, AfterValidator(validate_mobile)]
StrongPassword = Annotated[str, AfterValidator(validate_password)]
ClockTime = Annotated[str, AfterValidator(validate_time)]
Slug = Annotated[str, AfterValidator(validate_slug)]
IfscCode = Annotated[str, AfterValidator(validate_ifsc)]


__all__ = [
    "ClockTime",
    "IfscCode",
    "MOBILE_PATTERN",
    "MobileNumber",
    "PASSWORD_PATTERN",
    "Slug",
    "StrongPassword",
    "calculate_age",
    "time_to_minutes",
    "utc_now",
    "validate_ifsc",
    "validate_mobile",
    "validate_password",
    "validate_slug",
    "validate_time",
]
