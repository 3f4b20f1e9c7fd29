"""Booking creation, checkout verification and status changes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_gateway, bad_request, conflict, forbidden, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.common.validators import utc_now
from academy_api.features.batches.models import Batch
from academy_api.features.centers.models import CoachingCenter, PublishStatus
from academy_api.features.participants.models import Participant
from academy_api.features.payments.ledger import record_transaction
from academy_api.features.payments.models import (
    TransactionSource,
    TransactionStatus,
    TransactionType,
)
from academy_api.features.platform_settings.service import PlatformSettingsService
from academy_api.features.users.models import User
from academy_api.integrations.razorpay import PaymentGateway, PaymentGatewayError
from academy_api.settings import Settings

from .models import (
    OPEN_BOOKING_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
    booking_participants,
)
from .pricing import Commission, PriceBreakdown, calculate_commission, calculate_price, to_paise
from .schemas import (
    AdminBookingOut,
    BookingCreate,
    BookingOut,
    BookingSelection,
    BookingSummaryOut,
    PriceBreakdownOut,
    VerifyPaymentRequest,
)
from .validation import can_transition, capacity_problem, eligibility_problem, participant_label

logger = logging.getLogger(__name__)

BOOKING_ID_PREFIX = "PS"
_BOOKING_ID_ATTEMPTS = 5


@dataclass(slots=True)
class ValidatedSelection:
    batch: Batch
    center: CoachingCenter
    participants: list[Participant]


@dataclass(slots=True)
class CreatedBooking:
    booking: Booking
    order: dict[str, Any]


def format_booking_id(year: int, sequence: int) -> str:
    return f"{BOOKING_ID_PREFIX}-{year}-{sequence:04d}"


class BookingsService:
    def __init__(self, *, session: Session, settings: Settings, gateway: PaymentGateway) -> None:
        self._session = session
        self._settings = settings
        self._gateway = gateway
        self._platform = PlatformSettingsService(session=session, settings=settings)

    # ---- Lookups ---------------------------------------------------------

    def get(self, booking_id: UUID) -> Booking:
        booking = self._session.get(Booking, booking_id)
        if booking is None or booking.is_deleted:
            raise not_found("Booking not found")
        return booking

    def get_for_user(self, user: User, booking_id: UUID) -> Booking:
        booking = self.get(booking_id)
        if booking.user_id != user.id:
            raise not_found("Booking not found")
        return booking

    def get_for_academy(self, owner: User, booking_id: UUID) -> Booking:
        booking = self.get(booking_id)
        if booking.center is None or booking.center.owner_id != owner.id:
            raise not_found("Booking not found")
        return booking

    # ---- Listing ---------------------------------------------------------

    def list_for_user(
        self,
        user: User,
        *,
        params: PageParams,
        status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> Page[BookingOut]:
        stmt = select(Booking).where(Booking.user_id == user.id, Booking.is_deleted.is_(False))
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        if payment_status is not None:
            stmt = stmt.where(Booking.payment_status == payment_status)
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[Booking.created_at.desc()]
        )
        return page.map(BookingOut.model_validate)

    def list_for_academy(
        self,
        owner: User,
        *,
        params: PageParams,
        center_id: UUID | None = None,
        batch_id: UUID | None = None,
        status: BookingStatus | None = None,
    ) -> Page[BookingOut]:
        stmt = (
            select(Booking)
            .join(CoachingCenter, CoachingCenter.id == Booking.center_id)
            .where(CoachingCenter.owner_id == owner.id, Booking.is_deleted.is_(False))
        )
        if center_id is not None:
            stmt = stmt.where(Booking.center_id == center_id)
        if batch_id is not None:
            stmt = stmt.where(Booking.batch_id == batch_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[Booking.created_at.desc()]
        )
        return page.map(BookingOut.model_validate)

    def list_admin(
        self,
        *,
        params: PageParams,
        status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
        center_id: UUID | None = None,
        batch_id: UUID | None = None,
        user_id: UUID | None = None,
        search: str | None = None,
    ) -> Page[AdminBookingOut]:
        stmt = select(Booking).where(Booking.is_deleted.is_(False))
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        if payment_status is not None:
            stmt = stmt.where(Booking.payment_status == payment_status)
        if center_id is not None:
            stmt = stmt.where(Booking.center_id == center_id)
        if batch_id is not None:
            stmt = stmt.where(Booking.batch_id == batch_id)
        if user_id is not None:
            stmt = stmt.where(Booking.user_id == user_id)
        if search:
            stmt = stmt.where(Booking.booking_id.contains(search.strip().upper()))
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[Booking.created_at.desc()]
        )
        return page.map(AdminBookingOut.model_validate)

    # ---- Validation ------------------------------------------------------

    def _participants(self, user: User, participant_ids: list[UUID]) -> list[Participant]:
        if not participant_ids:
            raise bad_request("At least one participant ID is required")
        if len(set(participant_ids)) != len(participant_ids):
            raise bad_request("Duplicate participant IDs are not allowed")
        rows = (
            self._session.execute(
                select(Participant).where(
                    Participant.id.in_(participant_ids),
                    Participant.is_deleted.is_(False),
                    Participant.is_active.is_(True),
                )
            )
            .scalars()
            .all()
        )
        if len(rows) != len(participant_ids):
            raise not_found("One or more participants not found or inactive")
        for participant in rows:
            if participant.user_id != user.id:
                raise forbidden(f"Participant {participant.id} does not belong to you")
        by_id = {participant.id: participant for participant in rows}
        return [by_id[participant_id] for participant_id in participant_ids]

    def _bookable_batch(self, batch_id: UUID) -> tuple[Batch, CoachingCenter]:
        batch = self._session.get(Batch, batch_id)
        if batch is None:
            raise not_found("Batch not found")
        if batch.is_deleted:
            raise bad_request("Batch has been deleted and is not available for booking")
        if not batch.is_active:
            raise bad_request("Batch is disabled and not available for booking")
        if batch.status != PublishStatus.PUBLISHED:
            raise bad_request("Batch is not published and not available for booking")

        center = batch.center
        if center is None:
            raise not_found("Coaching center not found")
        if center.is_deleted:
            raise bad_request("Coaching center has been deleted and is not available for booking")
        if not center.is_active:
            raise bad_request("Coaching center is disabled and not available for booking")
        if center.status != PublishStatus.PUBLISHED:
            raise bad_request("Coaching center is not published and not available for booking")
        return batch, center

    def _open_booking_filter(self, batch_id: UUID):
        return (
            Booking.batch_id == batch_id,
            Booking.is_deleted.is_(False),
            Booking.status.in_(OPEN_BOOKING_STATUSES),
        )

    def _ensure_not_enrolled(self, batch: Batch, participants: list[Participant]) -> None:
        stmt = (
            select(booking_participants.c.participant_id)
            .join(Booking, Booking.id == booking_participants.c.booking_id)
            .where(
                *self._open_booking_filter(batch.id),
                booking_participants.c.participant_id.in_([p.id for p in participants]),
            )
            .distinct()
        )
        enrolled = set(self._session.execute(stmt).scalars())
        if not enrolled:
            return
        names = [participant_label(p) for p in participants if p.id in enrolled]
        verb = "is" if len(names) == 1 else "are"
        raise bad_request(f"{', '.join(names)} {verb} already enrolled in this batch")

    def booked_participants(self, batch_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(booking_participants)
            .join(Booking, Booking.id == booking_participants.c.booking_id)
            .where(*self._open_booking_filter(batch_id))
        )
        return int(self._session.execute(stmt).scalar_one())

    def validate_selection(self, user: User, selection: BookingSelection) -> ValidatedSelection:
        participants = self._participants(user, list(selection.participant_ids))
        batch, center = self._bookable_batch(selection.batch_id)
        self._ensure_not_enrolled(batch, participants)

        problem = capacity_problem(
            batch.capacity_max, self.booked_participants(batch.id), len(participants)
        )
        if problem:
            raise bad_request(problem)

        today = utc_now().date()
        for participant in participants:
            problem = eligibility_problem(participant, batch=batch, center=center, today=today)
            if problem:
                raise bad_request(problem)
        return ValidatedSelection(batch=batch, center=center, participants=participants)

    # ---- Pricing ---------------------------------------------------------

    def price(self, batch: Batch, participant_count: int) -> tuple[PriceBreakdown, Commission]:
        fees = self._platform.effective_fees()
        breakdown = calculate_price(
            admission_fee=batch.admission_fee,
            base_price=batch.base_price,
            discounted_price=batch.discounted_price,
            participant_count=participant_count,
            fees=fees,
        )
        if breakdown.total_amount <= 0:
            raise bad_request("Booking amount must be greater than zero")
        commission = calculate_commission(breakdown.batch_amount, fees.commission_rate)
        return breakdown, commission

    def summary(self, user: User, selection: BookingSelection) -> BookingSummaryOut:
        validated = self.validate_selection(user, selection)
        breakdown, _ = self.price(validated.batch, len(validated.participants))
        return BookingSummaryOut.model_validate(
            {
                "batch": validated.batch,
                "center": validated.center,
                "participants": validated.participants,
                "price_breakdown": PriceBreakdownOut.model_validate(breakdown),
            }
        )

    # ---- Lifecycle -------------------------------------------------------

    def _set_payment_status(self, booking: Booking, target: PaymentStatus) -> None:
        if booking.payment_status == target:
            return
        if not can_transition(booking.payment_status, target):
            raise conflict(
                f"Cannot change payment status from {booking.payment_status.value} "
                f"to {target.value}"
            )
        booking.payment_status = target

    def _next_booking_id(self, now: datetime, *, skip: int = 0) -> str:
        prefix = f"{BOOKING_ID_PREFIX}-{now.year}-"
        count = self._session.execute(
            select(func.count()).select_from(Booking).where(Booking.booking_id.startswith(prefix))
        ).scalar_one()
        return format_booking_id(now.year, int(count) + 1 + skip)

    def _insert(self, booking: Booking) -> None:
        """Assign the next yearly booking id, retrying when another request took it."""

        for attempt in range(_BOOKING_ID_ATTEMPTS):
            booking.booking_id = self._next_booking_id(utc_now(), skip=attempt)
            try:
                with self._session.begin_nested():
                    self._session.add(booking)
                    self._session.flush()
                return
            except IntegrityError:
                logger.warning(
                    "booking.id.collision",
                    extra=log_context(booking_id=booking.booking_id, attempt=attempt + 1),
                )
        raise conflict("Could not allocate a booking id; please retry")

    def create(self, user: User, payload: BookingCreate) -> CreatedBooking:
        validated = self.validate_selection(user, payload)
        batch = validated.batch
        breakdown, commission = self.price(batch, len(validated.participants))

        booking = Booking(
            user_id=user.id,
            batch_id=batch.id,
            center_id=validated.center.id,
            sport_id=batch.sport_id,
            amount=breakdown.total_amount,
            currency=breakdown.currency,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            price_breakdown=breakdown.as_dict(),
            commission=commission.as_dict(),
            notes=payload.notes,
        )
        booking.participants = list(validated.participants)
        self._insert(booking)

        try:
            order = self._gateway.create_order(
                amount=to_paise(breakdown.total_amount),
                currency=breakdown.currency,
                receipt=booking.booking_id,
                notes={"booking_id": booking.booking_id, "user_id": str(user.id)},
            )
        except PaymentGatewayError as exc:
            logger.warning(
                "booking.order.failed",
                extra=log_context(user_id=user.id, booking_id=booking.booking_id, error=str(exc)),
            )
            raise bad_gateway(f"Payment order could not be created: {exc}") from exc

        booking.razorpay_order_id = str(order["id"])
        self._set_payment_status(booking, PaymentStatus.PROCESSING)
        self._session.flush()
        logger.info(
            "booking.create.success",
            extra=log_context(
                user_id=user.id,
                booking_id=booking.booking_id,
                batch_id=batch.id,
                amount=str(booking.amount),
            ),
        )
        return CreatedBooking(
            booking=booking,
            order={
                "id": booking.razorpay_order_id,
                "amount": int(order.get("amount") or to_paise(booking.amount)),
                "currency": order.get("currency") or booking.currency,
                "key_id": getattr(self._gateway, "key_id", None),
            },
        )

    def verify_payment(self, booking: Booking, payload: VerifyPaymentRequest) -> Booking:
        if booking.payment_status == PaymentStatus.SUCCESS:
            raise bad_request("Payment has already been verified")
        if booking.payment_status != PaymentStatus.PROCESSING:
            raise bad_request(
                f"Payment cannot be verified while it is {booking.payment_status.value}"
            )
        if payload.razorpay_order_id != booking.razorpay_order_id:
            raise bad_request("Order id does not match this booking")
        if not self._gateway.verify_payment_signature(
            payload.razorpay_order_id, payload.razorpay_payment_id, payload.razorpay_signature
        ):
            logger.warning(
                "booking.payment.signature_invalid",
                extra=log_context(booking_id=booking.booking_id),
            )
            raise bad_request("Invalid payment signature")

        try:
            payment = self._gateway.fetch_payment(payload.razorpay_payment_id)
        except PaymentGatewayError as exc:
            raise bad_gateway(f"Payment could not be fetched: {exc}") from exc
        if int(payment.get("amount") or 0) != to_paise(booking.amount):
            logger.warning(
                "booking.payment.amount_mismatch",
                extra=log_context(
                    booking_id=booking.booking_id,
                    expected=to_paise(booking.amount),
                    received=payment.get("amount"),
                ),
            )
            raise bad_request("Payment amount does not match the booking amount")

        self._set_payment_status(booking, PaymentStatus.SUCCESS)
        booking.status = BookingStatus.CONFIRMED
        booking.razorpay_payment_id = payload.razorpay_payment_id
        booking.razorpay_signature = payload.razorpay_signature
        booking.payment_method = payment.get("method")
        booking.paid_at = utc_now()
        booking.failure_reason = None
        record_transaction(
            self._session,
            booking,
            type=TransactionType.PAYMENT,
            status=TransactionStatus.SUCCESS,
            source=TransactionSource.USER_VERIFICATION,
            amount=booking.amount,
            payment_id=payload.razorpay_payment_id,
            payment_method=payment.get("method"),
        )
        logger.info(
            "booking.payment.verified",
            extra=log_context(user_id=booking.user_id, booking_id=booking.booking_id),
        )
        return booking

    def cancel(self, booking: Booking, reason: str | None = None) -> Booking:
        if booking.status == BookingStatus.CANCELLED:
            raise bad_request("Booking is already cancelled")
        if booking.status == BookingStatus.COMPLETED:
            raise bad_request("Completed bookings cannot be cancelled")
        if (
            booking.status == BookingStatus.CONFIRMED
            or booking.payment_status == PaymentStatus.SUCCESS
        ):
            raise bad_request("Confirmed or paid bookings cannot be cancelled")

        self._set_payment_status(booking, PaymentStatus.CANCELLED)
        booking.status = BookingStatus.CANCELLED
        booking.cancellation_reason = reason
        booking.cancelled_at = utc_now()
        self._session.flush()
        logger.info(
            "booking.cancel.success",
            extra=log_context(user_id=booking.user_id, booking_id=booking.booking_id),
        )
        return booking

    def complete(self, booking: Booking) -> Booking:
        if booking.status != BookingStatus.CONFIRMED:
            raise bad_request("Only confirmed bookings can be marked as completed")
        booking.status = BookingStatus.COMPLETED
        booking.completed_at = utc_now()
        self._session.flush()
        logger.info("booking.complete.success", extra=log_context(booking_id=booking.booking_id))
        return booking


__all__ = ["BookingsService", "CreatedBooking", "ValidatedSelection", "format_booking_id"]
