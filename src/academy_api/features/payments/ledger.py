"""Transaction rows written by checkout verification, webhooks and refunds.

Writes are upserts keyed on gateway identifiers so that the same payment or
refund reported twice (checkout callback and webhook) yields a single row.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from academy_api.common.validators import utc_now
from academy_api.features.bookings.models import Booking, BookingStatus, PaymentStatus

from .models import Transaction, TransactionSource, TransactionStatus, TransactionType

FINAL_STATUSES = frozenset(
    {
        TransactionStatus.SUCCESS,
        TransactionStatus.FAILED,
        TransactionStatus.CANCELLED,
        TransactionStatus.REFUNDED,
    }
)
REFUND_TYPES = (TransactionType.REFUND, TransactionType.PARTIAL_REFUND)
IN_FLIGHT_REFUND_STATUSES = (
    TransactionStatus.SUCCESS,
    TransactionStatus.PENDING,
    TransactionStatus.PROCESSING,
)


def _find_existing(
    session: Session,
    booking: Booking,
    *,
    type: TransactionType,
    payment_id: str | None,
    refund_id: str | None,
) -> Transaction | None:
    if refund_id:
        stmt = select(Transaction).where(Transaction.razorpay_refund_id == refund_id)
    elif payment_id:
        stmt = select(Transaction).where(
            Transaction.booking_id == booking.id,
            Transaction.razorpay_payment_id == payment_id,
            Transaction.type == type,
            Transaction.razorpay_refund_id.is_(None),
        )
    else:
        return None
    return session.execute(stmt.limit(1)).scalar_one_or_none()


def record_transaction(
    session: Session,
    booking: Booking,
    *,
    type: TransactionType,
    status: TransactionStatus,
    source: TransactionSource,
    amount: Decimal,
    payment_id: str | None = None,
    refund_id: str | None = None,
    payment_method: str | None = None,
    failure_reason: str | None = None,
    webhook_data: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
) -> Transaction:
    transaction = _find_existing(
        session, booking, type=type, payment_id=payment_id, refund_id=refund_id
    )
    if transaction is None:
        transaction = Transaction(
            user_id=booking.user_id,
            booking_id=booking.id,
            razorpay_order_id=booking.razorpay_order_id,
            razorpay_payment_id=payment_id,
            razorpay_refund_id=refund_id,
            type=type,
            source=source,
            amount=amount,
            currency=booking.currency,
        )
        session.add(transaction)
    elif transaction.status == TransactionStatus.SUCCESS:
        # Settled rows are left untouched by late or replayed events.
        return transaction

    transaction.status = status
    transaction.type = type
    transaction.amount = amount
    if payment_method:
        transaction.payment_method = payment_method
    if failure_reason is not None:
        transaction.failure_reason = failure_reason
    if webhook_data is not None:
        transaction.webhook_data = webhook_data
    if metadata is not None:
        transaction.extra_metadata = {**(transaction.extra_metadata or {}), **metadata}
    if status in FINAL_STATUSES and transaction.processed_at is None:
        transaction.processed_at = utc_now()
    session.flush()
    return transaction


def refunded_total(
    session: Session, booking: Booking, *, include_in_flight: bool = False
) -> Decimal:
    """Settled refunds, plus unsettled ones when ``include_in_flight`` is set."""

    statuses = IN_FLIGHT_REFUND_STATUSES if include_in_flight else (TransactionStatus.SUCCESS,)
    stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
        Transaction.booking_id == booking.id,
        Transaction.type.in_(REFUND_TYPES),
        Transaction.status.in_(statuses),
    )
    return Decimal(str(session.execute(stmt).scalar_one()))


def settle_refunds(session: Session, booking: Booking, *, reason: str | None = None) -> bool:
    """Mark a fully refunded booking as refunded and cancelled.

    Partial refunds leave the payment in ``success``. Returns ``True`` when the
    booking changed.
    """

    if booking.payment_status != PaymentStatus.SUCCESS:
        return False
    if refunded_total(session, booking) < booking.amount:
        return False
    booking.payment_status = PaymentStatus.REFUNDED
    booking.status = BookingStatus.CANCELLED
    booking.cancelled_at = utc_now()
    booking.cancellation_reason = reason or booking.cancellation_reason or "Payment refunded"
    session.flush()
    return True


__all__ = [
    "FINAL_STATUSES",
    "IN_FLIGHT_REFUND_STATUSES",
    "REFUND_TYPES",
    "record_transaction",
    "refunded_total",
    "settle_refunds",
]
