from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import Field

from academy_api.common.pagination import Page
from academy_api.common.schema import Amount, BaseSchema, InputSchema

from .models import TransactionSource, TransactionStatus, TransactionType


class TransactionOut(BaseSchema):
    id: UUID
    user_id: UUID
    booking_id: UUID
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_refund_id: str | None = None
    type: TransactionType
    status: TransactionStatus
    source: TransactionSource
    amount: Amount
    currency: str
    payment_method: str | None = None
    failure_reason: str | None = None
    processed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AdminTransactionOut(TransactionOut):
    webhook_data: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias="extra_metadata", serialization_alias="metadata"
    )


class RefundRequest(InputSchema):
    """Omit ``amount`` to refund whatever has not been refunded yet."""

    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    reason: str | None = Field(default=None, max_length=500)


TransactionPage = Page[TransactionOut]
AdminTransactionPage = Page[AdminTransactionOut]


__all__ = [
    "AdminTransactionOut",
    "AdminTransactionPage",
    "RefundRequest",
    "TransactionOut",
    "TransactionPage",
]
