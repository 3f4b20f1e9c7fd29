"""Transaction listings and admin-initiated refunds."""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_gateway, bad_request, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.features.bookings.models import Booking, PaymentStatus
from academy_api.features.bookings.pricing import round2, to_decimal, to_paise
from academy_api.features.users.models import User
from academy_api.integrations.razorpay import PaymentGateway, PaymentGatewayError
from academy_api.settings import Settings

from .ledger import record_transaction, refunded_total, settle_refunds
from .models import Transaction, TransactionSource, TransactionStatus, TransactionType
from .schemas import AdminTransactionOut, RefundRequest, TransactionOut

logger = logging.getLogger(__name__)

_REFUND_STATUS = {
    "processed": TransactionStatus.SUCCESS,
    "failed": TransactionStatus.FAILED,
}


class TransactionsService:
    def __init__(self, *, session: Session, settings: Settings, gateway: PaymentGateway) -> None:
        self._session = session
        self._settings = settings
        self._gateway = gateway

    def list_for_user(
        self,
        user: User,
        *,
        params: PageParams,
        status: TransactionStatus | None = None,
        type: TransactionType | None = None,
    ) -> Page[TransactionOut]:
        stmt = select(Transaction).where(Transaction.user_id == user.id)
        if status is not None:
            stmt = stmt.where(Transaction.status == status)
        if type is not None:
            stmt = stmt.where(Transaction.type == type)
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[Transaction.created_at.desc()]
        )
        return page.map(TransactionOut.model_validate)

    def list_admin(
        self,
        *,
        params: PageParams,
        user_id: UUID | None = None,
        booking_id: UUID | None = None,
        status: TransactionStatus | None = None,
        type: TransactionType | None = None,
        source: TransactionSource | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        search: str | None = None,
    ) -> Page[AdminTransactionOut]:
        stmt = select(Transaction)
        if user_id is not None:
            stmt = stmt.where(Transaction.user_id == user_id)
        if booking_id is not None:
            stmt = stmt.where(Transaction.booking_id == booking_id)
        if status is not None:
            stmt = stmt.where(Transaction.status == status)
        if type is not None:
            stmt = stmt.where(Transaction.type == type)
        if source is not None:
            stmt = stmt.where(Transaction.source == source)
        if created_from is not None:
            stmt = stmt.where(Transaction.created_at >= created_from)
        if created_to is not None:
            stmt = stmt.where(Transaction.created_at <= created_to)
        if search:
            term = search.strip()
            stmt = stmt.where(
                (Transaction.razorpay_order_id == term)
                | (Transaction.razorpay_payment_id == term)
                | (Transaction.razorpay_refund_id == term)
            )
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[Transaction.created_at.desc()]
        )
        return page.map(AdminTransactionOut.model_validate)

    def get_booking(self, booking_id: UUID) -> Booking:
        booking = self._session.get(Booking, booking_id)
        if booking is None or booking.is_deleted:
            raise not_found("Booking not found")
        return booking

    def refund(self, booking: Booking, payload: RefundRequest, *, actor: User) -> Transaction:
        if booking.payment_status != PaymentStatus.SUCCESS or not booking.razorpay_payment_id:
            raise bad_request("Only successfully paid bookings can be refunded")

        # Refunds still pending at the gateway hold their share of the balance.
        already = refunded_total(self._session, booking, include_in_flight=True)
        remaining = round2(to_decimal(booking.amount) - already)
        amount = round2(payload.amount) if payload.amount is not None else remaining
        if remaining <= 0:
            raise bad_request("Booking has already been fully refunded")
        if amount > remaining:
            raise bad_request(f"Refund amount exceeds the refundable balance of {remaining}")

        full = amount >= remaining
        try:
            response = self._gateway.refund(
                booking.razorpay_payment_id,
                amount=None if full and already == 0 else to_paise(amount),
            )
        except PaymentGatewayError as exc:
            logger.warning(
                "payment.refund.gateway_failed",
                extra=log_context(booking_id=booking.booking_id, error=str(exc)),
            )
            raise bad_gateway(f"Refund could not be processed: {exc}") from exc

        status = _REFUND_STATUS.get(str(response.get("status")), TransactionStatus.PROCESSING)
        transaction = record_transaction(
            self._session,
            booking,
            type=TransactionType.REFUND if full else TransactionType.PARTIAL_REFUND,
            status=status,
            source=TransactionSource.MANUAL,
            amount=amount,
            payment_id=booking.razorpay_payment_id,
            refund_id=response.get("id"),
            metadata={"reason": payload.reason, "refunded_by": str(actor.id)},
        )
        if status == TransactionStatus.SUCCESS:
            settle_refunds(self._session, booking, reason=payload.reason)

        logger.info(
            "payment.refund.success",
            extra=log_context(
                user_id=actor.id,
                booking_id=booking.booking_id,
                amount=str(amount),
                refund_status=status.value,
            ),
        )
        return transaction


__all__ = ["TransactionsService"]
