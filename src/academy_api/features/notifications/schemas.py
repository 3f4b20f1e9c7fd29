from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema

from .models import NotificationChannel, NotificationPriority, RecipientType


class NotificationOut(BaseSchema):
    id: UUID
    recipient_type: RecipientType
    recipient_id: UUID
    title: str
    body: str
    channels: list[NotificationChannel]
    priority: NotificationPriority
    data: dict[str, Any] | None = None
    is_read: bool
    read_at: datetime | None = None
    sent: bool
    sent_at: datetime | None = None
    error: str | None = None
    created_at: datetime


class NotificationCreate(InputSchema):
    """Targets one recipient when ``recipient_id`` is set, otherwise every account of the type."""

    recipient_type: RecipientType
    recipient_id: UUID | None = None
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=2000)
    channels: list[NotificationChannel] = Field(default_factory=list, max_length=4)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: dict[str, Any] | None = None

    @field_validator("channels")
    @classmethod
    def _unique_channels(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class DispatchResult(BaseSchema):
    created: int
    sent: int
    failed: int


class ReadAllResult(BaseSchema):
    updated: int


class UnreadCount(BaseSchema):
    unread: int


NotificationPage = Page[NotificationOut]


__all__ = [
    "DispatchResult",
    "NotificationCreate",
    "NotificationOut",
    "NotificationPage",
    "ReadAllResult",
    "UnreadCount",
]
