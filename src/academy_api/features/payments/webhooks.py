"""Razorpay webhook processing.

Every recognised event is applied idempotently: replays of an event that was
already applied leave bookings and transactions unchanged. Events that do not
match a booking are logged and acknowledged so Razorpay stops retrying them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_request
from academy_api.common.logging import log_context
from academy_api.common.validators import utc_now
from academy_api.features.bookings.models import Booking, BookingStatus, PaymentStatus
from academy_api.features.bookings.pricing import round2, to_decimal
from academy_api.integrations.razorpay import verify_webhook_signature
from academy_api.settings import Settings

from .ledger import record_transaction, refunded_total, settle_refunds
from .models import TransactionSource, TransactionStatus, TransactionType

logger = logging.getLogger(__name__)

_CLOSED_PAYMENT_STATUSES = (PaymentStatus.REFUNDED, PaymentStatus.CANCELLED)


def _entity(body: dict[str, Any], name: str) -> dict[str, Any] | None:
    entity = (body.get("payload") or {}).get(name, {}).get("entity")
    return entity if isinstance(entity, dict) else None


def _rupees(paise: Any) -> Decimal:
    return round2(to_decimal(paise or 0) / 100)


class WebhookService:
    def __init__(self, *, session: Session, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._handlers: dict[str, Callable[[dict[str, Any]], bool]] = {
            "payment.captured": self._payment_captured,
            "payment.failed": self._payment_failed,
            "order.paid": self._order_paid,
            "refund.processed": self._refund_processed,
            "refund.failed": self._refund_failed,
        }

    def verify(self, body: bytes, signature: str | None) -> None:
        secret = self._settings.razorpay_webhook_secret
        if secret is None:
            logger.error("webhook.razorpay.secret_missing")
            raise bad_request("Invalid webhook signature")
        if not signature or not verify_webhook_signature(
            body=body, signature=signature, webhook_secret=secret.get_secret_value()
        ):
            logger.warning("webhook.razorpay.signature_invalid")
            raise bad_request("Invalid webhook signature")

    def handle(self, body: bytes, signature: str | None) -> bool:
        """Verify and apply one delivery. Returns whether the event changed anything."""

        self.verify(body, signature)
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise bad_request("Webhook body is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise bad_request("Webhook body is not valid JSON")

        event = str(payload.get("event") or "")
        handler = self._handlers.get(event)
        if handler is None:
            logger.info("webhook.razorpay.ignored", extra=log_context(event=event))
            return False

        handled = handler(payload)
        logger.info(
            "webhook.razorpay.processed",
            extra=log_context(event=event, handled=handled),
        )
        return handled

    # ---- Lookups ---------------------------------------------------------

    def _booking_by_order(self, order_id: str | None) -> Booking | None:
        if not order_id:
            return None
        stmt = select(Booking).where(Booking.razorpay_order_id == order_id).limit(1)
        return self._session.execute(stmt).scalar_one_or_none()

    def _booking_by_payment(self, payment_id: str | None) -> Booking | None:
        if not payment_id:
            return None
        stmt = select(Booking).where(Booking.razorpay_payment_id == payment_id).limit(1)
        return self._session.execute(stmt).scalar_one_or_none()

    def _booking_for(self, entity: dict[str, Any], *, event: str) -> Booking | None:
        booking = self._booking_by_order(entity.get("order_id")) or self._booking_by_payment(
            entity.get("payment_id") or entity.get("id")
        )
        if booking is None:
            logger.warning(
                "webhook.razorpay.booking_missing",
                extra=log_context(event=event, entity_id=entity.get("id")),
            )
        return booking

    # ---- Payments --------------------------------------------------------

    def _mark_paid(self, booking: Booking, payment: dict[str, Any], body: dict[str, Any]) -> bool:
        if booking.payment_status in _CLOSED_PAYMENT_STATUSES:
            logger.warning(
                "webhook.razorpay.payment_ignored",
                extra=log_context(
                    booking_id=booking.booking_id,
                    payment_status=booking.payment_status.value,
                ),
            )
            return False

        changed = False
        if booking.payment_status != PaymentStatus.SUCCESS:
            booking.payment_status = PaymentStatus.SUCCESS
            booking.razorpay_payment_id = payment.get("id") or booking.razorpay_payment_id
            booking.payment_method = payment.get("method") or booking.payment_method
            booking.paid_at = utc_now()
            booking.failure_reason = None
            changed = True
        if booking.status == BookingStatus.PENDING:
            booking.status = BookingStatus.CONFIRMED
            changed = True

        record_transaction(
            self._session,
            booking,
            type=TransactionType.PAYMENT,
            status=TransactionStatus.SUCCESS,
            source=TransactionSource.WEBHOOK,
            amount=_rupees(payment.get("amount")) or booking.amount,
            payment_id=booking.razorpay_payment_id,
            payment_method=payment.get("method"),
            webhook_data=body,
        )
        return changed

    def _payment_captured(self, body: dict[str, Any]) -> bool:
        payment = _entity(body, "payment")
        if payment is None:
            return False
        booking = self._booking_for(payment, event="payment.captured")
        if booking is None:
            return False
        return self._mark_paid(booking, payment, body)

    def _payment_failed(self, body: dict[str, Any]) -> bool:
        payment = _entity(body, "payment")
        if payment is None:
            return False
        booking = self._booking_for(payment, event="payment.failed")
        if booking is None:
            return False
        if booking.payment_status in (PaymentStatus.SUCCESS, *_CLOSED_PAYMENT_STATUSES):
            return False

        reason = payment.get("error_description") or "Payment failed"
        booking.payment_status = PaymentStatus.FAILED
        booking.failure_reason = reason
        record_transaction(
            self._session,
            booking,
            type=TransactionType.PAYMENT,
            status=TransactionStatus.FAILED,
            source=TransactionSource.WEBHOOK,
            amount=_rupees(payment.get("amount")) or booking.amount,
            payment_id=payment.get("id"),
            payment_method=payment.get("method"),
            failure_reason=reason,
            webhook_data=body,
        )
        return True

    def _order_paid(self, body: dict[str, Any]) -> bool:
        order = _entity(body, "order")
        payment = _entity(body, "payment")
        booking = self._booking_by_order((order or {}).get("id") or (payment or {}).get("order_id"))
        if booking is None:
            logger.warning(
                "webhook.razorpay.booking_missing", extra=log_context(event="order.paid")
            )
            return False
        if payment is not None:
            return self._mark_paid(booking, payment, body)
        paid = booking.payment_status == PaymentStatus.SUCCESS
        if paid and booking.status == BookingStatus.PENDING:
            booking.status = BookingStatus.CONFIRMED
            self._session.flush()
            return True
        return False

    # ---- Refunds ---------------------------------------------------------

    def _refund_processed(self, body: dict[str, Any]) -> bool:
        refund = _entity(body, "refund")
        if refund is None:
            return False
        booking = self._booking_by_payment(refund.get("payment_id"))
        if booking is None:
            logger.warning(
                "webhook.razorpay.booking_missing",
                extra=log_context(event="refund.processed", entity_id=refund.get("id")),
            )
            return False

        amount = _rupees(refund.get("amount"))
        remaining = round2(to_decimal(booking.amount) - refunded_total(self._session, booking))
        record_transaction(
            self._session,
            booking,
            type=TransactionType.REFUND if amount >= remaining else TransactionType.PARTIAL_REFUND,
            status=TransactionStatus.SUCCESS,
            source=TransactionSource.WEBHOOK,
            amount=amount,
            payment_id=refund.get("payment_id"),
            refund_id=refund.get("id"),
            webhook_data=body,
        )
        settle_refunds(self._session, booking)
        return True

    def _refund_failed(self, body: dict[str, Any]) -> bool:
        refund = _entity(body, "refund")
        if refund is None:
            return False
        booking = self._booking_by_payment(refund.get("payment_id"))
        if booking is None:
            return False
        record_transaction(
            self._session,
            booking,
            type=TransactionType.REFUND,
            status=TransactionStatus.FAILED,
            source=TransactionSource.WEBHOOK,
            amount=_rupees(refund.get("amount")),
            payment_id=refund.get("payment_id"),
            refund_id=refund.get("id"),
            failure_reason=refund.get("error_description") or "Refund failed",
            webhook_data=body,
        )
        return True


__all__ = ["WebhookService"]
