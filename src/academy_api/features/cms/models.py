"""Static content pages."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from academy_api.db import (
    Base,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    UUIDType,
    enum_values,
)


class CmsPlatform(str, Enum):
    WEB = "web"
    APP = "app"
    BOTH = "both"


class CmsPage(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "cms_pages"

    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    platform: Mapped[CmsPlatform] = mapped_column(
        SAEnum(CmsPlatform, name="cms_platform", native_enum=False, length=10,
               values_callable=enum_values),
        nullable=False,
        default=CmsPlatform.BOTH,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_by_id: Mapped[uuid.UUID | None] = mapped_column(UUIDType(), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)


__all__ = ["CmsPage", "CmsPlatform"]
