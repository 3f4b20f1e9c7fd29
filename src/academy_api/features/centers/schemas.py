"""Coaching center payloads for the academy, admin and public surfaces."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field, HttpUrl, model_validator

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema
from academy_api.common.validators import ClockTime, IfscCode, time_to_minutes
from academy_api.features.users.models import Gender

from .models import ApprovalStatus, PublishStatus

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class AgeRange(BaseSchema):
    min: int = Field(ge=3, le=18)
    max: int = Field(ge=3, le=18)

    @model_validator(mode="after")
    def _ordered(self):
        if self.max < self.min:
            raise ValueError("Maximum age must be greater than or equal to minimum age")
        return self


class CenterAddress(BaseSchema):
    line1: str | None = Field(default=None, max_length=255)
    line2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    pincode: str | None = Field(default=None, pattern=r"^\d{6}$")


class CenterLocation(BaseSchema):
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    address: CenterAddress | None = None


class OperationalTiming(BaseSchema):
    operating_days: list[Weekday] = Field(min_length=1)
    opening_time: ClockTime
    closing_time: ClockTime

    @model_validator(mode="after")
    def _closing_after_opening(self):
        if time_to_minutes(self.closing_time) <= time_to_minutes(self.opening_time):
            raise ValueError("Closing time must be after opening time")
        return self


class MediaItem(BaseSchema):
    url: HttpUrl
    thumbnail: HttpUrl | None = None
    is_active: bool = True


class SportDetail(BaseSchema):
    sport_id: UUID
    description: str = Field(min_length=5, max_length=2000)
    images: list[MediaItem] = Field(default_factory=list)
    videos: list[MediaItem] = Field(default_factory=list)


class BankInformation(BaseSchema):
    bank_name: str = Field(min_length=1, max_length=100)
    account_number: str = Field(min_length=9, max_length=18, pattern=r"^\d+$")
    ifsc_code: IfscCode
    account_holder_name: str = Field(min_length=1, max_length=100)
    gst_number: str | None = Field(
        default=None,
        pattern=r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$",
    )


class NewFacility(BaseSchema):
    name: str = Field(min_length=1, max_length=100)


class _CenterFields(InputSchema):
    mobile_number: str | None = Field(default=None, max_length=15)
    email: str | None = Field(default=None, max_length=320)
    description: str | None = Field(default=None, max_length=5000)
    rules: list[str] | None = None
    logo: str | None = Field(default=None, max_length=500)
    sports: list[UUID] | None = None
    sport_details: list[SportDetail] | None = None
    age: AgeRange | None = None
    location: CenterLocation | None = None
    facilities: list[UUID | NewFacility] | None = None
    operational_timing: OperationalTiming | None = None
    documents: list[MediaItem] | None = None
    allowed_genders: list[Gender] | None = Field(default=None, min_length=1)
    allowed_disabled: bool | None = None
    is_only_for_disabled: bool | None = None
    experience: int | None = Field(default=None, ge=0)
    bank_information: BankInformation | None = None
    status: PublishStatus | None = None

    @model_validator(mode="after")
    def _rules_length(self):
        for rule in self.rules or []:
            if len(rule) > 500:
                raise ValueError("Each rule must be at most 500 characters")
        return self


class CenterCreate(_CenterFields):
    center_name: str = Field(min_length=1, max_length=200)
    status: PublishStatus = PublishStatus.DRAFT


class CenterUpdate(_CenterFields):
    center_name: str | None = Field(default=None, min_length=1, max_length=200)


class CenterApproval(InputSchema):
    approval_status: ApprovalStatus
    rejection_reason: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _reason_for_rejection(self):
        if self.approval_status == ApprovalStatus.REJECTED.value and not self.rejection_reason:
            raise ValueError("A rejection reason is required")
        return self


class CenterActivation(InputSchema):
    is_active: bool


class SportBrief(BaseSchema):
    id: UUID
    name: str
    slug: str
    logo: str | None = None


class FacilityBrief(BaseSchema):
    id: UUID
    name: str
    icon: str | None = None


class CenterPublicOut(BaseSchema):
    id: UUID
    center_name: str
    mobile_number: str | None = None
    email: str | None = None
    description: str | None = None
    rules: list[str] = Field(default_factory=list)
    logo: str | None = None
    sports: list[SportBrief] = Field(default_factory=list)
    sport_details: list[SportDetail] = Field(default_factory=list)
    age: AgeRange | None = None
    location: CenterLocation | None = None
    facilities: list[FacilityBrief] = Field(default_factory=list)
    operational_timing: OperationalTiming | None = None
    allowed_genders: list[Gender] = Field(default_factory=list)
    allowed_disabled: bool
    is_only_for_disabled: bool
    experience: int | None = None


class CenterOut(CenterPublicOut):
    owner_id: UUID | None = None
    documents: list[MediaItem] = Field(default_factory=list)
    bank_information: BankInformation | None = None
    status: PublishStatus
    approval_status: ApprovalStatus
    rejection_reason: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


CenterPage = Page[CenterOut]
CenterPublicPage = Page[CenterPublicOut]


__all__ = [
    "AgeRange",
    "BankInformation",
    "CenterActivation",
    "CenterAddress",
    "CenterApproval",
    "CenterCreate",
    "CenterLocation",
    "CenterOut",
    "CenterPage",
    "CenterPublicOut",
    "CenterPublicPage",
    "CenterUpdate",
    "FacilityBrief",
    "MediaItem",
    "NewFacility",
    "OperationalTiming",
    "SportBrief",
    "SportDetail",
]
