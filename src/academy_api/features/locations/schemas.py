from __future__ import annotations

from uuid import UUID

from pydantic import Field

from academy_api.common.schema import BaseSchema, InputSchema


class CountryOut(BaseSchema):
    id: UUID
    name: str
    iso_code: str | None = None
    phone_code: str | None = None
    is_active: bool


class StateOut(BaseSchema):
    id: UUID
    country_id: UUID
    name: str
    code: str | None = None
    is_active: bool


class CityOut(BaseSchema):
    id: UUID
    state_id: UUID
    name: str
    is_active: bool


class CountryCreate(InputSchema):
    name: str = Field(min_length=1, max_length=100)
    iso_code: str | None = Field(default=None, min_length=2, max_length=3)
    phone_code: str | None = Field(default=None, max_length=8, pattern=r"^\+?\d{1,6}$")


class CountryUpdate(InputSchema):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    iso_code: str | None = Field(default=None, min_length=2, max_length=3)
    phone_code: str | None = Field(default=None, max_length=8, pattern=r"^\+?\d{1,6}$")
    is_active: bool | None = None


class StateCreate(InputSchema):
    country_id: UUID
    name: str = Field(min_length=1, max_length=100)
    code: str | None = Field(default=None, max_length=10)


class StateUpdate(InputSchema):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, max_length=10)
    is_active: bool | None = None


class CityCreate(InputSchema):
    state_id: UUID
    name: str = Field(min_length=1, max_length=100)


class CityUpdate(InputSchema):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    is_active: bool | None = None


__all__ = [
    "CityCreate",
    "CityOut",
    "CityUpdate",
    "CountryCreate",
    "CountryOut",
    "CountryUpdate",
    "StateCreate",
    "StateOut",
    "StateUpdate",
]
