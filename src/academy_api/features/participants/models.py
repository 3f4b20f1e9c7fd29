"""Dependent profiles booked into batches."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from academy_api.db import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    UUIDType,
    enum_values,
)
from academy_api.features.users.models import Gender


class Participant(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "participants"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    first_name: Mapped[str | None] = mapped_column(String(191), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(191), nullable=True)
    gender: Mapped[Gender | None] = mapped_column(
        SAEnum(Gender, name="participant_gender", native_enum=False, length=10,
               values_callable=enum_values),
        nullable=True,
    )
    disability: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dob: Mapped[date | None] = mapped_column(Date, nullable=True)
    school_name: Mapped[str | None] = mapped_column(String(191), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(15), nullable=True)
    profile_photo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    address: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    is_self: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def is_disabled(self) -> bool:
        return self.disability == 1

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


__all__ = ["Participant"]
