"""Promotional banners."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, Integer, String, Text
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


class BannerPosition(str, Enum):
    HOMEPAGE_TOP = "homepage_top"
    HOMEPAGE_MIDDLE = "homepage_middle"
    HOMEPAGE_BOTTOM = "homepage_bottom"
    CATEGORY_TOP = "category_top"
    CATEGORY_SIDEBAR = "category_sidebar"
    SPORT_PAGE = "sport_page"
    CENTER_PAGE = "center_page"
    SEARCH_RESULTS = "search_results"
    MOBILE_APP_HOME = "mobile_app_home"
    MOBILE_APP_CATEGORY = "mobile_app_category"


class BannerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SCHEDULED = "scheduled"
    EXPIRED = "expired"
    DRAFT = "draft"


class BannerAudience(str, Enum):
    ALL = "all"
    NEW_USERS = "new_users"
    EXISTING_USERS = "existing_users"
    PREMIUM_USERS = "premium_users"
    MOBILE_USERS = "mobile_users"
    WEB_USERS = "web_users"


class LinkType(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class Banner(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "banners"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    mobile_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    link_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    link_type: Mapped[LinkType | None] = mapped_column(
        SAEnum(LinkType, name="banner_link_type", native_enum=False, length=10,
               values_callable=enum_values),
        nullable=True,
    )
    position: Mapped[BannerPosition] = mapped_column(
        SAEnum(BannerPosition, name="banner_position", native_enum=False, length=30,
               values_callable=enum_values),
        nullable=False,
        index=True,
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[BannerStatus] = mapped_column(
        SAEnum(BannerStatus, name="banner_status", native_enum=False, length=20,
               values_callable=enum_values),
        nullable=False,
        default=BannerStatus.DRAFT,
    )
    target_audience: Mapped[BannerAudience] = mapped_column(
        SAEnum(BannerAudience, name="banner_audience", native_enum=False, length=20,
               values_callable=enum_values),
        nullable=False,
        default=BannerAudience.ALL,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_only_for_academy: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    click_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sport_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    center_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    extra_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    starts_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    ends_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(UUIDType(), nullable=True)
    updated_by_id: Mapped[uuid.UUID | None] = mapped_column(UUIDType(), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)


__all__ = ["Banner", "BannerAudience", "BannerPosition", "BannerStatus", "LinkType"]
