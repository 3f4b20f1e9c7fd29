from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema
from academy_api.common.validators import Slug

from .models import CmsPlatform


class CmsPageOut(BaseSchema):
    id: UUID
    slug: str
    title: str
    content: str
    platform: CmsPlatform
    is_active: bool
    version: int
    updated_by_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class CmsPagePublic(BaseSchema):
    slug: str
    title: str
    content: str
    platform: CmsPlatform
    version: int
    updated_at: datetime


class CmsPageCreate(InputSchema):
    slug: Slug = Field(min_length=1, max_length=200)
    title: str = Field(min_length=1, max_length=200)
    content: str = ""
    platform: CmsPlatform = CmsPlatform.BOTH
    is_active: bool = True


class CmsPageUpdate(InputSchema):
    slug: Slug | None = Field(default=None, min_length=1, max_length=200)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    platform: CmsPlatform | None = None
    is_active: bool | None = None


CmsPagePage = Page[CmsPageOut]


__all__ = ["CmsPageCreate", "CmsPageOut", "CmsPagePage", "CmsPagePublic", "CmsPageUpdate"]
