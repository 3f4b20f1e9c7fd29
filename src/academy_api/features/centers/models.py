"""Coaching center table and its sport/facility associations."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String, Table, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy_api.db import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    UUIDType,
    enum_values,
)

if TYPE_CHECKING:
    from academy_api.features.facilities.models import Facility
    from academy_api.features.sports.models import Sport
    from academy_api.features.users.models import User


class PublishStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class ApprovalStatus(str, Enum):
    PENDING = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


center_sports = Table(
    "center_sports",
    Base.metadata,
    Column(
        "center_id",
        UUIDType(),
        ForeignKey("coaching_centers.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("sport_id", UUIDType(), ForeignKey("sports.id", ondelete="CASCADE"), primary_key=True),
)

center_facilities = Table(
    "center_facilities",
    Base.metadata,
    Column(
        "center_id",
        UUIDType(),
        ForeignKey("coaching_centers.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "facility_id",
        UUIDType(),
        ForeignKey("facilities.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class CoachingCenter(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "coaching_centers"

    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    center_name: Mapped[str] = mapped_column(String(200), nullable=False)
    mobile_number: Mapped[str | None] = mapped_column(String(15), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    rules: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    logo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    sport_details: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    age_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    age_max: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    operational_timing: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    documents: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    allowed_genders: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    allowed_disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_only_for_disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bank_information: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[PublishStatus] = mapped_column(
        SAEnum(PublishStatus, name="center_status", native_enum=False, length=20,
               values_callable=enum_values),
        nullable=False,
        default=PublishStatus.DRAFT,
    )
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        SAEnum(ApprovalStatus, name="center_approval_status", native_enum=False, length=20,
               values_callable=enum_values),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    owner: Mapped[User | None] = relationship("User", lazy="joined")
    sports: Mapped[list[Sport]] = relationship("Sport", secondary=center_sports, lazy="selectin")
    facilities: Mapped[list[Facility]] = relationship(
        "Facility", secondary=center_facilities, lazy="selectin"
    )

    @property
    def age(self) -> dict[str, int] | None:
        if self.age_min is None or self.age_max is None:
            return None
        return {"min": self.age_min, "max": self.age_max}

    @property
    def sport_ids(self) -> list[uuid.UUID]:
        return [sport.id for sport in self.sports]

    @property
    def facility_ids(self) -> list[uuid.UUID]:
        return [facility.id for facility in self.facilities]

    @property
    def is_bookable(self) -> bool:
        return self.is_active and not self.is_deleted and self.status == PublishStatus.PUBLISHED


__all__ = [
    "ApprovalStatus",
    "CoachingCenter",
    "PublishStatus",
    "center_facilities",
    "center_sports",
]
