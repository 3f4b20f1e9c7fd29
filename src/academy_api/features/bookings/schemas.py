from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from academy_api.common.pagination import Page
from academy_api.common.schema import Amount, BaseSchema, InputSchema

from .models import BookingStatus, PaymentStatus


class BookingSelection(InputSchema):
    batch_id: UUID
    participant_ids: list[UUID] = Field(min_length=1, max_length=20)

    @field_validator("participant_ids")
    @classmethod
    def _unique_participants(cls, value: list[UUID]) -> list[UUID]:
        if len(set(value)) != len(value):
            raise ValueError("Duplicate participant IDs are not allowed")
        return value


class BookingCreate(BookingSelection):
    notes: str | None = Field(default=None, max_length=1000)


class VerifyPaymentRequest(InputSchema):
    razorpay_order_id: str = Field(min_length=1, max_length=64)
    razorpay_payment_id: str = Field(min_length=1, max_length=64)
    razorpay_signature: str = Field(min_length=1, max_length=255)


class CancelBookingRequest(InputSchema):
    reason: str | None = Field(default=None, max_length=500)


class PriceBreakdownOut(BaseSchema):
    admission_fee_per_participant: Amount
    total_admission_fee: Amount
    base_fee_per_participant: Amount
    total_base_fee: Amount
    batch_amount: Amount
    platform_fee: Amount
    subtotal: Amount
    gst_percentage: Amount
    gst_amount: Amount
    total_amount: Amount
    participant_count: int
    currency: str


class BatchBrief(BaseSchema):
    id: UUID
    name: str


class CenterBrief(BaseSchema):
    id: UUID
    center_name: str


class ParticipantBrief(BaseSchema):
    id: UUID
    first_name: str | None = None
    last_name: str | None = None


class UserBrief(BaseSchema):
    id: UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    mobile: str | None = None


class BookingSummaryOut(BaseSchema):
    batch: BatchBrief
    center: CenterBrief
    participants: list[ParticipantBrief]
    price_breakdown: PriceBreakdownOut


class PaymentOut(BaseSchema):
    status: PaymentStatus
    amount: Amount
    currency: str
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    payment_method: str | None = None
    paid_at: datetime | None = None
    failure_reason: str | None = None


class BookingOut(BaseSchema):
    id: UUID
    booking_id: str
    user_id: UUID
    batch_id: UUID
    center_id: UUID
    sport_id: UUID
    batch: BatchBrief
    center: CenterBrief
    participants: list[ParticipantBrief]
    amount: Amount
    currency: str
    status: BookingStatus
    payment: PaymentOut
    price_breakdown: dict[str, Any]
    notes: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AdminBookingOut(BookingOut):
    user: UserBrief
    commission: dict[str, Any] | None = None


class RazorpayOrderOut(BaseSchema):
    id: str
    amount: int
    currency: str
    key_id: str | None = None


class BookingCreated(BaseSchema):
    booking: BookingOut
    razorpay_order: RazorpayOrderOut


BookingPage = Page[BookingOut]
AdminBookingPage = Page[AdminBookingOut]


__all__ = [
    "AdminBookingOut",
    "AdminBookingPage",
    "BatchBrief",
    "BookingCreate",
    "BookingCreated",
    "BookingOut",
    "BookingPage",
    "BookingSelection",
    "BookingSummaryOut",
    "CancelBookingRequest",
    "CenterBrief",
    "ParticipantBrief",
    "PaymentOut",
    "PriceBreakdownOut",
    "RazorpayOrderOut",
    "UserBrief",
    "VerifyPaymentRequest",
]
