"""Batch table."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy_api.db import (
    Base,
    Money,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    UUIDType,
    enum_values,
)
from academy_api.features.centers.models import PublishStatus

if TYPE_CHECKING:
    from academy_api.features.centers.models import CoachingCenter
    from academy_api.features.sports.models import Sport


class Batch(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "batches"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    center_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        ForeignKey("coaching_centers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sport_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("sports.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    coach_id: Mapped[uuid.UUID | None] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    scheduled: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    duration: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    capacity_min: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    capacity_max: Mapped[int | None] = mapped_column(Integer, nullable=True)
    age_min: Mapped[int] = mapped_column(Integer, nullable=False)
    age_max: Mapped[int] = mapped_column(Integer, nullable=False)
    admission_fee: Mapped[Decimal | None] = mapped_column(Money(), nullable=True)
    base_price: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    discounted_price: Mapped[Decimal | None] = mapped_column(Money(), nullable=True)
    fee_structure: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    is_allowed_disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    gender: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    certificate_issued: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[PublishStatus] = mapped_column(
        SAEnum(PublishStatus, name="batch_status", native_enum=False, length=20,
               values_callable=enum_values),
        nullable=False,
        default=PublishStatus.DRAFT,
    )

    center: Mapped[CoachingCenter] = relationship("CoachingCenter", lazy="joined")
    sport: Mapped[Sport] = relationship("Sport", lazy="joined")

    @property
    def capacity(self) -> dict[str, int | None]:
        return {"min": self.capacity_min, "max": self.capacity_max}

    @property
    def age(self) -> dict[str, int]:
        return {"min": self.age_min, "max": self.age_max}

    @property
    def is_bookable(self) -> bool:
        return self.is_active and not self.is_deleted and self.status == PublishStatus.PUBLISHED


__all__ = ["Batch"]
