from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, model_validator

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema

from .models import BannerAudience, BannerPosition, BannerStatus, LinkType


class BannerPublic(BaseSchema):
    id: UUID
    title: str
    description: str | None = None
    image_url: str
    mobile_image_url: str | None = None
    link_url: str | None = None
    link_type: LinkType | None = None
    position: BannerPosition
    priority: int


class BannerOut(BannerPublic):
    status: BannerStatus
    target_audience: BannerAudience
    is_active: bool
    is_only_for_academy: bool
    click_count: int
    view_count: int
    sport_ids: list[str]
    center_ids: list[str]
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias="extra_metadata", serialization_alias="metadata"
    )
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    created_by_id: UUID | None = None
    updated_by_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class _BannerFields(InputSchema):
    @model_validator(mode="after")
    def _check_window_and_link(self):
        starts_at = getattr(self, "starts_at", None)
        ends_at = getattr(self, "ends_at", None)
        if starts_at and ends_at and ends_at <= starts_at:
            raise ValueError("ends_at must be after starts_at")
        if getattr(self, "link_url", None) and not getattr(self, "link_type", None):
            raise ValueError("link_type is required when link_url is set")
        return self


class BannerCreate(_BannerFields):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    image_url: str = Field(min_length=1, max_length=500)
    mobile_image_url: str | None = Field(default=None, max_length=500)
    link_url: str | None = Field(default=None, max_length=500)
    link_type: LinkType | None = None
    position: BannerPosition
    priority: int = Field(default=0, ge=0)
    status: BannerStatus = BannerStatus.DRAFT
    target_audience: BannerAudience = BannerAudience.ALL
    is_active: bool = True
    is_only_for_academy: bool = False
    sport_ids: list[UUID] = Field(default_factory=list)
    center_ids: list[UUID] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None


class BannerUpdate(_BannerFields):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    image_url: str | None = Field(default=None, min_length=1, max_length=500)
    mobile_image_url: str | None = Field(default=None, max_length=500)
    link_url: str | None = Field(default=None, max_length=500)
    link_type: LinkType | None = None
    position: BannerPosition | None = None
    priority: int | None = Field(default=None, ge=0)
    status: BannerStatus | None = None
    target_audience: BannerAudience | None = None
    is_active: bool | None = None
    is_only_for_academy: bool | None = None
    sport_ids: list[UUID] | None = None
    center_ids: list[UUID] | None = None
    metadata: dict[str, Any] | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None


BannerPage = Page[BannerOut]


__all__ = ["BannerCreate", "BannerOut", "BannerPage", "BannerPublic", "BannerUpdate"]
