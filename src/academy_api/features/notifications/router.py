from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_notifications_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission, require_roles
from academy_api.features.rbac.models import Action, Section
from academy_api.features.users.models import User

from .models import RecipientType
from .schemas import (
    DispatchResult,
    NotificationCreate,
    NotificationOut,
    NotificationPage,
    ReadAllResult,
    UnreadCount,
)
from .service import ROLE_FOR_RECIPIENT, NotificationsService

admin_router = APIRouter(prefix="/admin/notifications", tags=["admin-notifications"])

NotificationsServiceDep = Annotated[NotificationsService, Depends(get_notifications_service)]
PageDep = Annotated[PageParams, Depends(page_params)]
NotificationViewer = Annotated[
    User, Depends(require_permission(Section.NOTIFICATION, Action.VIEW))
]
NotificationSender = Annotated[
    User, Depends(require_permission(Section.NOTIFICATION, Action.CREATE))
]


@admin_router.post(
    "", response_model=ApiResponse[DispatchResult], status_code=status.HTTP_201_CREATED
)
def send_notification(
    payload: NotificationCreate, service: NotificationsServiceDep, actor: NotificationSender
):
    return ok(service.send(payload, actor=actor), "Notification sent")


@admin_router.get("", response_model=ApiResponse[NotificationPage])
def admin_list_notifications(
    service: NotificationsServiceDep,
    _: NotificationViewer,
    params: PageDep,
    recipient_type: Annotated[RecipientType | None, Query()] = None,
    recipient_id: Annotated[UUID | None, Query()] = None,
    sent: Annotated[bool | None, Query()] = None,
):
    page = service.list_admin(
        params=params, recipient_type=recipient_type, recipient_id=recipient_id, sent=sent
    )
    return ok(page)


def build_recipient_router(recipient_type: RecipientType) -> APIRouter:
    """Inbox endpoints for one audience, mounted under ``/<audience>/notifications``."""

    router = APIRouter(
        prefix=f"/{recipient_type.value}/notifications",
        tags=[f"{recipient_type.value}-notifications"],
    )
    recipient = Depends(require_roles(ROLE_FOR_RECIPIENT[recipient_type]))

    @router.get("", response_model=ApiResponse[NotificationPage])
    def list_notifications(
        service: NotificationsServiceDep,
        params: PageDep,
        is_read: Annotated[bool | None, Query()] = None,
        user: User = recipient,
    ):
        page = service.list_for_recipient(user, recipient_type, params=params, is_read=is_read)
        return ok(page)

    @router.get("/unread-count", response_model=ApiResponse[UnreadCount])
    def unread_count(service: NotificationsServiceDep, user: User = recipient):
        return ok(UnreadCount(unread=service.unread_count(user, recipient_type)))

    @router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationOut])
    def mark_read(
        notification_id: UUID, service: NotificationsServiceDep, user: User = recipient
    ):
        notification = service.mark_read(user, recipient_type, notification_id)
        return ok(NotificationOut.model_validate(notification), "Notification marked as read")

    @router.post("/read-all", response_model=ApiResponse[ReadAllResult])
    def mark_all_read(service: NotificationsServiceDep, user: User = recipient):
        updated = service.mark_all_read(user, recipient_type)
        return ok(ReadAllResult(updated=updated), "All notifications marked as read")

    return router


user_router = build_recipient_router(RecipientType.USER)
academy_router = build_recipient_router(RecipientType.ACADEMY)


__all__ = ["academy_router", "admin_router", "build_recipient_router", "user_router"]
