"""Booking table with its embedded payment state."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Column, ForeignKey, String, Table, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy_api.db import (
    Base,
    Money,
    SoftDeleteMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    UUIDType,
    enum_values,
)

if TYPE_CHECKING:
    from academy_api.features.batches.models import Batch
    from academy_api.features.centers.models import CoachingCenter
    from academy_api.features.participants.models import Participant
    from academy_api.features.users.models import User


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


OPEN_BOOKING_STATUSES: tuple[BookingStatus, ...] = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


booking_participants = Table(
    "booking_participants",
    Base.metadata,
    Column(
        "booking_id",
        UUIDType(),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "participant_id",
        UUIDType(),
        ForeignKey("participants.id", ondelete="RESTRICT"),
        primary_key=True,
    ),
)


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "bookings"

    booking_id: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    batch_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("batches.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    center_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        ForeignKey("coaching_centers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    sport_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("sports.id", ondelete="RESTRICT"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(BookingStatus, name="booking_status", native_enum=False, length=20,
               values_callable=enum_values),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    price_breakdown: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    commission: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Payment sub-document.
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, name="payment_status", native_enum=False, length=20,
               values_callable=enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    razorpay_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    razorpay_signature: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[User] = relationship("User", lazy="joined")
    batch: Mapped[Batch] = relationship("Batch", lazy="joined")
    center: Mapped[CoachingCenter] = relationship("CoachingCenter", lazy="joined")
    participants: Mapped[list[Participant]] = relationship(
        "Participant", secondary=booking_participants, lazy="selectin"
    )

    @property
    def payment(self) -> dict[str, Any]:
        return {
            "status": self.payment_status,
            "amount": self.amount,
            "currency": self.currency,
            "razorpay_order_id": self.razorpay_order_id,
            "razorpay_payment_id": self.razorpay_payment_id,
            "payment_method": self.payment_method,
            "paid_at": self.paid_at,
            "failure_reason": self.failure_reason,
        }

    @property
    def participant_ids(self) -> list[uuid.UUID]:
        return [participant.id for participant in self.participants]


__all__ = [
    "Booking",
    "BookingStatus",
    "OPEN_BOOKING_STATUSES",
    "PaymentStatus",
    "booking_participants",
]
