"""Pydantic schemas for account payloads."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import EmailStr, Field

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema
from academy_api.common.validators import MobileNumber, PINCODE_PATTERN, StrongPassword

from .models import Gender, RegistrationMethod, UserType


class Address(BaseSchema):
    line1: str | None = Field(default=None, max_length=255)
    line2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    pincode: str | None = Field(default=None, pattern=PINCODE_PATTERN.pattern)


class UserOut(BaseSchema):
    """Account view returned to the account owner and to admins."""

    id: UUID
    first_name: str
    last_name: str | None = None
    email: str | None = None
    mobile: str | None = None
    dob: date | None = None
    gender: Gender | None = None
    user_type: UserType | None = None
    registration_method: RegistrationMethod | None = None
    profile_image: str | None = None
    address: Address | None = None
    favorite_sport_ids: list[str] = Field(default_factory=list)
    academy_name: str | None = None
    roles: list[str] = Field(default_factory=list, validation_alias="role_names")
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UserPage(Page[UserOut]):
    """Paginated collection of users."""


class ProfileUpdate(InputSchema):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    dob: date | None = None
    gender: Gender | None = None
    address: Address | None = None
    favorite_sport_ids: list[UUID] | None = None
    profile_image: str | None = Field(default=None, max_length=500)
    academy_name: str | None = Field(default=None, max_length=200)


class MobileUpdate(InputSchema):
    mobile: MobileNumber
    otp: str = Field(min_length=4, max_length=8)


class PasswordChange(InputSchema):
    current_password: str = Field(min_length=1)
    new_password: StrongPassword


class AdminUserUpdate(InputSchema):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None
    roles: list[str] | None = None


class OperationalUserCreate(InputSchema):
    """Admin panel staff account (``admin`` or ``employee``)."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: EmailStr
    mobile: MobileNumber | None = None
    password: StrongPassword
    role: str = "employee"


__all__ = [
    "Address",
    "AdminUserUpdate",
    "MobileUpdate",
    "OperationalUserCreate",
    "PasswordChange",
    "ProfileUpdate",
    "UserOut",
    "UserPage",
]
