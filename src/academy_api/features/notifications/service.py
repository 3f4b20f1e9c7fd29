"""Notification records and best-effort delivery over SMS and email.

Delivery never raises: provider failures are written to ``error`` on the row
so an admin broadcast cannot be aborted by one unreachable recipient.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from academy_api.common.errors import not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.common.validators import utc_now
from academy_api.features.platform_settings.models import SETTINGS_ROW_ID, PlatformSetting
from academy_api.features.platform_settings.schemas import NotificationToggles
from academy_api.features.rbac.models import Role
from academy_api.features.users.models import User
from academy_api.integrations.mailer import EmailSender
from academy_api.integrations.sms import DeliveryError, SmsSender

from .models import Notification, NotificationChannel, RecipientType
from .schemas import DispatchResult, NotificationCreate, NotificationOut

logger = logging.getLogger(__name__)

ROLE_FOR_RECIPIENT = {
    RecipientType.USER: "user",
    RecipientType.ACADEMY: "academy",
}


class NotificationsService:
    def __init__(
        self,
        *,
        session: Session,
        sms_sender: SmsSender,
        email_sender: EmailSender,
    ) -> None:
        self._session = session
        self._sms = sms_sender
        self._email = email_sender

    # ---- Recipients ------------------------------------------------------

    def _recipients(self, recipient_type: RecipientType, recipient_id: UUID | None) -> list[User]:
        role = ROLE_FOR_RECIPIENT[recipient_type]
        stmt = select(User).where(
            User.is_deleted.is_(False),
            User.is_active.is_(True),
            User.roles.any(Role.name == role),
        )
        if recipient_id is not None:
            user = self._session.execute(stmt.where(User.id == recipient_id)).scalar_one_or_none()
            if user is None:
                raise not_found("Recipient not found")
            return [user]
        return list(self._session.execute(stmt).scalars())

    def _toggles(self) -> NotificationToggles:
        row = self._session.get(PlatformSetting, SETTINGS_ROW_ID)
        return NotificationToggles.model_validate((row.notifications if row else None) or {})

    # ---- Delivery --------------------------------------------------------

    def _deliver(
        self, notification: Notification, user: User, toggles: NotificationToggles
    ) -> None:
        errors: list[str] = []
        delivered = 0
        for channel in notification.channels:
            if not toggles.enabled or not getattr(toggles, channel, False):
                errors.append(f"{channel}: disabled")
                continue
            try:
                if channel == NotificationChannel.SMS.value:
                    if not user.mobile:
                        errors.append("sms: recipient has no mobile number")
                        continue
                    text = f"{notification.title}\n{notification.body}"
                    self._sms.send(to=user.mobile, body=text)
                elif channel == NotificationChannel.EMAIL.value:
                    if not user.email:
                        errors.append("email: recipient has no email address")
                        continue
                    self._email.send(
                        to=user.email, subject=notification.title, body=notification.body
                    )
                else:
                    errors.append(f"{channel}: no provider configured")
                    continue
            except DeliveryError as exc:
                errors.append(f"{channel}: {exc}")
                continue
            delivered += 1

        # In-app only notifications count as sent once stored.
        if delivered or not notification.channels:
            notification.sent = True
            notification.sent_at = utc_now()
        notification.error = "; ".join(errors) or None

    def send(self, payload: NotificationCreate, *, actor: User) -> DispatchResult:
        recipient_type = RecipientType(payload.recipient_type)
        recipients = self._recipients(recipient_type, payload.recipient_id)
        toggles = self._toggles()

        sent = failed = 0
        for user in recipients:
            notification = Notification(
                recipient_type=recipient_type,
                recipient_id=user.id,
                title=payload.title,
                body=payload.body,
                channels=list(payload.channels),
                priority=payload.priority,
                data=payload.data,
                created_by_id=actor.id,
            )
            self._session.add(notification)
            self._deliver(notification, user, toggles)
            if notification.sent:
                sent += 1
            else:
                failed += 1
        self._session.flush()

        logger.info(
            "notification.dispatch.success",
            extra=log_context(
                user_id=actor.id,
                recipient_type=recipient_type.value,
                recipients=len(recipients),
                sent=sent,
                failed=failed,
            ),
        )
        return DispatchResult(created=len(recipients), sent=sent, failed=failed)

    # ---- Reads -----------------------------------------------------------

    def list_admin(
        self,
        *,
        params: PageParams,
        recipient_type: RecipientType | None = None,
        recipient_id: UUID | None = None,
        sent: bool | None = None,
    ) -> Page[NotificationOut]:
        stmt = select(Notification)
        if recipient_type is not None:
            stmt = stmt.where(Notification.recipient_type == recipient_type)
        if recipient_id is not None:
            stmt = stmt.where(Notification.recipient_id == recipient_id)
        if sent is not None:
            stmt = stmt.where(Notification.sent.is_(sent))
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[Notification.created_at.desc()]
        )
        return page.map(NotificationOut.model_validate)

    def _mine(self, user: User, recipient_type: RecipientType):
        return select(Notification).where(
            Notification.recipient_type == recipient_type,
            Notification.recipient_id == user.id,
        )

    def list_for_recipient(
        self,
        user: User,
        recipient_type: RecipientType,
        *,
        params: PageParams,
        is_read: bool | None = None,
    ) -> Page[NotificationOut]:
        stmt = self._mine(user, recipient_type)
        if is_read is not None:
            stmt = stmt.where(Notification.is_read.is_(is_read))
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[Notification.created_at.desc()]
        )
        return page.map(NotificationOut.model_validate)

    def unread_count(self, user: User, recipient_type: RecipientType) -> int:
        stmt = select(func.count()).select_from(
            self._mine(user, recipient_type).where(Notification.is_read.is_(False)).subquery()
        )
        return int(self._session.execute(stmt).scalar_one())

    def mark_read(self, user: User, recipient_type: RecipientType, notification_id: UUID):
        notification = self._session.execute(
            self._mine(user, recipient_type).where(Notification.id == notification_id)
        ).scalar_one_or_none()
        if notification is None:
            raise not_found("Notification not found")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
            self._session.flush()
        return notification

    def mark_all_read(self, user: User, recipient_type: RecipientType) -> int:
        result = self._session.execute(
            update(Notification)
            .where(
                Notification.recipient_type == recipient_type,
                Notification.recipient_id == user.id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=utc_now())
        )
        return int(result.rowcount or 0)


__all__ = ["NotificationsService", "ROLE_FOR_RECIPIENT"]
