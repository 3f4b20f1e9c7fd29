"""Participant payloads."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import Field, field_validator

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema
from academy_api.common.validators import MobileNumber, utc_now
from academy_api.features.users.models import Gender
from academy_api.features.users.schemas import Address


def _not_in_future(value: date | None) -> date | None:
    if value is not None and value > utc_now().date():
        raise ValueError("Date of birth cannot be in the future")
    return value


class ParticipantOut(BaseSchema):
    id: UUID
    first_name: str | None = None
    last_name: str | None = None
    gender: Gender | None = None
    disability: int
    dob: date | None = None
    school_name: str | None = None
    contact_number: str | None = None
    profile_photo: str | None = None
    address: Address | None = None
    is_self: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ParticipantCreate(InputSchema):
    first_name: str = Field(min_length=1, max_length=191)
    last_name: str | None = Field(default=None, max_length=191)
    gender: Gender | None = None
    disability: int = Field(default=0, ge=0, le=1)
    dob: date | None = None
    school_name: str | None = Field(default=None, max_length=191)
    contact_number: MobileNumber | None = None
    profile_photo: str | None = Field(default=None, max_length=500)
    address: Address | None = None

    _dob = field_validator("dob")(_not_in_future)


class ParticipantUpdate(InputSchema):
    first_name: str | None = Field(default=None, min_length=1, max_length=191)
    last_name: str | None = Field(default=None, max_length=191)
    gender: Gender | None = None
    disability: int | None = Field(default=None, ge=0, le=1)
    dob: date | None = None
    school_name: str | None = Field(default=None, max_length=191)
    contact_number: MobileNumber | None = None
    profile_photo: str | None = Field(default=None, max_length=500)
    address: Address | None = None

    _dob = field_validator("dob")(_not_in_future)


ParticipantPage = Page[ParticipantOut]


__all__ = ["ParticipantCreate", "ParticipantOut", "ParticipantPage", "ParticipantUpdate"]
