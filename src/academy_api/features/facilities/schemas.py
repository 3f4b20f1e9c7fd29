from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema


class FacilityOut(BaseSchema):
    id: UUID
    name: str
    description: str | None = None
    icon: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class FacilityCreate(InputSchema):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    icon: str | None = Field(default=None, max_length=500)
    is_active: bool = True


class FacilityUpdate(InputSchema):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    icon: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


FacilityPage = Page[FacilityOut]


__all__ = ["FacilityCreate", "FacilityOut", "FacilityPage", "FacilityUpdate"]
