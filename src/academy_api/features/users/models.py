"""SQLAlchemy models for marketplace accounts."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Column, Date, ForeignKey, String, Table
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from academy_api.db import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    UUIDType,
    enum_values,
)

if TYPE_CHECKING:
    from academy_api.features.rbac.models import Role


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class UserType(str, Enum):
    STUDENT = "student"
    GUARDIAN = "guardian"


class RegistrationMethod(str, Enum):
    EMAIL = "email"
    MOBILE = "mobile"
    GOOGLE = "google"
    FACEBOOK = "facebook"
    APPLE = "apple"
    INSTAGRAM = "instagram"


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", UUIDType(), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", UUIDType(), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class User(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Students, guardians, academy owners and operational staff share one table."""

    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, unique=True)
    mobile: Mapped[str | None] = mapped_column(String(15), nullable=True, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    dob: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[Gender | None] = mapped_column(
        SAEnum(Gender, name="gender", native_enum=False, length=10, values_callable=enum_values),
        nullable=True,
    )
    user_type: Mapped[UserType | None] = mapped_column(
        SAEnum(UserType, name="user_type", native_enum=False, length=10,
               values_callable=enum_values),
        nullable=True,
    )
    registration_method: Mapped[RegistrationMethod | None] = mapped_column(
        SAEnum(
            RegistrationMethod,
            name="registration_method",
            native_enum=False,
            length=20,
            values_callable=enum_values,
        ),
        nullable=True,
    )
    profile_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    address: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    favorite_sport_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    academy_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    social_uid: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(UUIDType(), nullable=True)

    roles: Mapped[list[Role]] = relationship(
        "Role",
        secondary=user_roles,
        lazy="selectin",
    )

    @validates("email")
    def _normalise_email(self, _key: str, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip().lower()
        return cleaned or None

    @property
    def role_names(self) -> list[str]:
        return sorted(role.name for role in self.roles)

    def has_role(self, *names: str) -> bool:
        wanted = set(names)
        return any(role.name in wanted for role in self.roles)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


__all__ = ["Gender", "RegistrationMethod", "User", "UserType", "user_roles"]
