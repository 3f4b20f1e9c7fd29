from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema
from academy_api.common.validators import Slug


class SportOut(BaseSchema):
    id: UUID
    name: str
    slug: str
    logo: str | None = None
    is_active: bool
    is_popular: bool
    created_at: datetime
    updated_at: datetime


class SportCreate(InputSchema):
    name: str = Field(min_length=1, max_length=100)
    slug: Slug | None = Field(default=None, max_length=120)
    logo: str | None = Field(default=None, max_length=500)
    is_active: bool = True
    is_popular: bool = False


class SportUpdate(InputSchema):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: Slug | None = Field(default=None, max_length=120)
    logo: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    is_popular: bool | None = None


SportPage = Page[SportOut]


__all__ = ["SportCreate", "SportOut", "SportPage", "SportUpdate"]
