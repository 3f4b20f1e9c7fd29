from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_bookings_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission, require_roles
from academy_api.features.rbac.models import Action, RoleName, Section
from academy_api.features.users.models import User

from .models import BookingStatus, PaymentStatus
from .schemas import (
    AdminBookingOut,
    AdminBookingPage,
    BookingCreate,
    BookingCreated,
    BookingOut,
    BookingPage,
    BookingSelection,
    BookingSummaryOut,
    CancelBookingRequest,
    VerifyPaymentRequest,
)
from .service import BookingsService

user_router = APIRouter(prefix="/user/bookings", tags=["user-bookings"])
academy_router = APIRouter(prefix="/academy/bookings", tags=["academy-bookings"])
admin_router = APIRouter(prefix="/admin/bookings", tags=["admin-bookings"])

BookingsServiceDep = Annotated[BookingsService, Depends(get_bookings_service)]
StudentUser = Annotated[User, Depends(require_roles(RoleName.USER.value))]
AcademyUser = Annotated[User, Depends(require_roles(RoleName.ACADEMY.value))]
BookingViewer = Annotated[User, Depends(require_permission(Section.BOOKING, Action.VIEW))]
PageDep = Annotated[PageParams, Depends(page_params)]


# ---- User ------------------------------------------------------------------


@user_router.post("/summary", response_model=ApiResponse[BookingSummaryOut])
def booking_summary(payload: BookingSelection, user: StudentUser, service: BookingsServiceDep):
    return ok(service.summary(user, payload))


@user_router.post(
    "", response_model=ApiResponse[BookingCreated], status_code=status.HTTP_201_CREATED
)
def create_booking(payload: BookingCreate, user: StudentUser, service: BookingsServiceDep):
    created = service.create(user, payload)
    data = BookingCreated.model_validate(
        {"booking": BookingOut.model_validate(created.booking), "razorpay_order": created.order}
    )
    return ok(data, "Booking created successfully")


@user_router.get("", response_model=ApiResponse[BookingPage])
def list_my_bookings(
    user: StudentUser,
    service: BookingsServiceDep,
    params: PageDep,
    status_filter: Annotated[BookingStatus | None, Query(alias="status")] = None,
    payment_status: Annotated[PaymentStatus | None, Query()] = None,
):
    page = service.list_for_user(
        user, params=params, status=status_filter, payment_status=payment_status
    )
    return ok(page)


@user_router.get("/{booking_id}", response_model=ApiResponse[BookingOut])
def get_my_booking(booking_id: UUID, user: StudentUser, service: BookingsServiceDep):
    return ok(BookingOut.model_validate(service.get_for_user(user, booking_id)))


@user_router.post("/{booking_id}/verify-payment", response_model=ApiResponse[BookingOut])
def verify_booking_payment(
    booking_id: UUID,
    payload: VerifyPaymentRequest,
    user: StudentUser,
    service: BookingsServiceDep,
):
    booking = service.verify_payment(service.get_for_user(user, booking_id), payload)
    return ok(BookingOut.model_validate(booking), "Payment verified successfully")


@user_router.post("/{booking_id}/cancel", response_model=ApiResponse[BookingOut])
def cancel_my_booking(
    booking_id: UUID,
    user: StudentUser,
    service: BookingsServiceDep,
    payload: CancelBookingRequest | None = None,
):
    reason = payload.reason if payload else None
    booking = service.cancel(service.get_for_user(user, booking_id), reason)
    return ok(BookingOut.model_validate(booking), "Booking cancelled successfully")


# ---- Academy ---------------------------------------------------------------


@academy_router.get("", response_model=ApiResponse[BookingPage])
def academy_list_bookings(
    user: AcademyUser,
    service: BookingsServiceDep,
    params: PageDep,
    center_id: Annotated[UUID | None, Query()] = None,
    batch_id: Annotated[UUID | None, Query()] = None,
    status_filter: Annotated[BookingStatus | None, Query(alias="status")] = None,
):
    page = service.list_for_academy(
        user, params=params, center_id=center_id, batch_id=batch_id, status=status_filter
    )
    return ok(page)


@academy_router.get("/{booking_id}", response_model=ApiResponse[BookingOut])
def academy_get_booking(booking_id: UUID, user: AcademyUser, service: BookingsServiceDep):
    return ok(BookingOut.model_validate(service.get_for_academy(user, booking_id)))


@academy_router.patch("/{booking_id}/complete", response_model=ApiResponse[BookingOut])
def academy_complete_booking(booking_id: UUID, user: AcademyUser, service: BookingsServiceDep):
    booking = service.complete(service.get_for_academy(user, booking_id))
    return ok(BookingOut.model_validate(booking), "Booking marked as completed")


# ---- Admin -----------------------------------------------------------------


@admin_router.get("", response_model=ApiResponse[AdminBookingPage])
def admin_list_bookings(
    service: BookingsServiceDep,
    _: BookingViewer,
    params: PageDep,
    status_filter: Annotated[BookingStatus | None, Query(alias="status")] = None,
    payment_status: Annotated[PaymentStatus | None, Query()] = None,
    center_id: Annotated[UUID | None, Query()] = None,
    batch_id: Annotated[UUID | None, Query()] = None,
    user_id: Annotated[UUID | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=50)] = None,
):
    page = service.list_admin(
        params=params,
        status=status_filter,
        payment_status=payment_status,
        center_id=center_id,
        batch_id=batch_id,
        user_id=user_id,
        search=search,
    )
    return ok(page)


@admin_router.get("/{booking_id}", response_model=ApiResponse[AdminBookingOut])
def admin_get_booking(booking_id: UUID, service: BookingsServiceDep, _: BookingViewer):
    return ok(AdminBookingOut.model_validate(service.get(booking_id)))


__all__ = ["academy_router", "admin_router", "user_router"]
