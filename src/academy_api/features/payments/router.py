from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request

from academy_api.api.deps import get_transactions_service, get_webhooks_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission, require_roles
from academy_api.features.rbac.models import Action, RoleName, Section
from academy_api.features.users.models import User

from .models import TransactionSource, TransactionStatus, TransactionType
from .schemas import AdminTransactionOut, AdminTransactionPage, RefundRequest, TransactionPage
from .service import TransactionsService
from .webhooks import WebhookService

webhooks_router = APIRouter(prefix="/webhooks", tags=["webhooks"])
user_router = APIRouter(prefix="/user/transactions", tags=["user-transactions"])
admin_router = APIRouter(prefix="/admin/transactions", tags=["admin-transactions"])
refunds_router = APIRouter(prefix="/admin/bookings", tags=["admin-bookings"])

TransactionsServiceDep = Annotated[TransactionsService, Depends(get_transactions_service)]
WebhookServiceDep = Annotated[WebhookService, Depends(get_webhooks_service)]
StudentUser = Annotated[User, Depends(require_roles(RoleName.USER.value))]
PageDep = Annotated[PageParams, Depends(page_params)]
TransactionViewer = Annotated[
    User, Depends(require_permission(Section.TRANSACTION, Action.VIEW))
]
Refunder = Annotated[User, Depends(require_permission(Section.BOOKING, Action.UPDATE))]


async def read_raw_body(request: Request) -> bytes:
    return await request.body()


RawBody = Annotated[bytes, Depends(read_raw_body)]


@webhooks_router.post("/razorpay", response_model=ApiResponse[None])
def razorpay_webhook(
    body: RawBody,
    service: WebhookServiceDep,
    x_razorpay_signature: Annotated[str | None, Header()] = None,
):
    service.handle(body, x_razorpay_signature)
    return ok(None, "Webhook processed")


@user_router.get("", response_model=ApiResponse[TransactionPage])
def list_my_transactions(
    user: StudentUser,
    service: TransactionsServiceDep,
    params: PageDep,
    status: Annotated[TransactionStatus | None, Query()] = None,
    type: Annotated[TransactionType | None, Query()] = None,
):
    return ok(service.list_for_user(user, params=params, status=status, type=type))


@admin_router.get("", response_model=ApiResponse[AdminTransactionPage])
def admin_list_transactions(
    service: TransactionsServiceDep,
    _: TransactionViewer,
    params: PageDep,
    user_id: Annotated[UUID | None, Query()] = None,
    booking_id: Annotated[UUID | None, Query()] = None,
    status: Annotated[TransactionStatus | None, Query()] = None,
    type: Annotated[TransactionType | None, Query()] = None,
    source: Annotated[TransactionSource | None, Query()] = None,
    created_from: Annotated[datetime | None, Query()] = None,
    created_to: Annotated[datetime | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    page = service.list_admin(
        params=params,
        user_id=user_id,
        booking_id=booking_id,
        status=status,
        type=type,
        source=source,
        created_from=created_from,
        created_to=created_to,
        search=search,
    )
    return ok(page)


@refunds_router.post("/{booking_id}/refund", response_model=ApiResponse[AdminTransactionOut])
def admin_refund_booking(
    booking_id: UUID,
    service: TransactionsServiceDep,
    actor: Refunder,
    payload: RefundRequest | None = None,
):
    booking = service.get_booking(booking_id)
    transaction = service.refund(booking, payload or RefundRequest(), actor=actor)
    return ok(AdminTransactionOut.model_validate(transaction), "Refund initiated successfully")


__all__ = ["admin_router", "refunds_router", "user_router", "webhooks_router"]
