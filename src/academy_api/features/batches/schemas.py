"""Batch payloads: schedule, duration, capacity, pricing and fee structure."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import Field, model_validator

from academy_api.common.pagination import Page
from academy_api.common.schema import Amount, BaseSchema, InputSchema
from academy_api.common.validators import ClockTime, time_to_minutes, utc_now
from academy_api.features.centers.models import PublishStatus
from academy_api.features.users.models import Gender

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
DurationType = Literal["day", "week", "month", "year"]
Money = Decimal


def _ends_after(start: str, end: str) -> bool:
    return time_to_minutes(end) > time_to_minutes(start)


class IndividualTiming(BaseSchema):
    day: Weekday
    start_time: ClockTime
    end_time: ClockTime

    @model_validator(mode="after")
    def _ordered(self):
        if not _ends_after(self.start_time, self.end_time):
            raise ValueError("End time must be after start time")
        return self


class Schedule(BaseSchema):
    """Either one common time window or per-day timings, never both."""

    start_date: date
    end_date: date | None = None
    start_time: ClockTime | None = None
    end_time: ClockTime | None = None
    individual_timings: list[IndividualTiming] | None = None
    training_days: list[Weekday] = Field(min_length=1)

    @model_validator(mode="after")
    def _consistent(self):
        common = self.start_time is not None or self.end_time is not None
        individual = bool(self.individual_timings)
        if common and individual:
            raise ValueError("Use either start_time/end_time or individual_timings, not both")
        if not common and not individual:
            raise ValueError(
                "Either common timing (start_time and end_time) or individual_timings "
                "must be provided"
            )
        if common:
            if self.start_time is None or self.end_time is None:
                raise ValueError("Both start_time and end_time are required")
            if not _ends_after(self.start_time, self.end_time):
                raise ValueError("End time must be after start time")
        if individual:
            covered = {timing.day for timing in self.individual_timings or []}
            if not set(self.training_days) <= covered:
                raise ValueError(
                    "All selected training days must have timing entries in individual_timings"
                )
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("End date must be greater than or equal to start date")
        return self


class Duration(BaseSchema):
    count: int = Field(ge=1, le=1000)
    type: DurationType


class Capacity(BaseSchema):
    min: int = Field(ge=1, le=1000)
    max: int | None = Field(default=None, ge=1, le=1000)

    @model_validator(mode="after")
    def _ordered(self):
        if self.max is not None and self.max < self.min:
            raise ValueError("Maximum capacity must be greater than or equal to minimum capacity")
        return self


class BatchAge(BaseSchema):
    min: int = Field(ge=3, le=18)
    max: int = Field(ge=3, le=18)

    @model_validator(mode="after")
    def _ordered(self):
        if self.max < self.min:
            raise ValueError("Maximum age must be greater than or equal to minimum age")
        return self


class FeeStructure(BaseSchema):
    fee_type: str = Field(min_length=1, max_length=50)
    fee_configuration: dict[str, Any] = Field(default_factory=dict)


class _BatchFields(InputSchema):
    coach_id: UUID | None = None
    scheduled: Schedule | None = None
    duration: Duration | None = None
    capacity: Capacity | None = None
    age: BatchAge | None = None
    admission_fee: Money | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    base_price: Money | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    discounted_price: Money | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    fee_structure: FeeStructure | None = None
    is_allowed_disabled: bool | None = None
    gender: list[Gender] | None = None
    certificate_issued: bool | None = None
    status: PublishStatus | None = None

    @model_validator(mode="after")
    def _discount_not_above_base(self):
        if (
            self.discounted_price is not None
            and self.base_price is not None
            and self.discounted_price > self.base_price
        ):
            raise ValueError("Discounted price cannot exceed the base price")
        return self


class BatchCreate(_BatchFields):
    name: str = Field(min_length=1, max_length=50)
    center_id: UUID
    sport_id: UUID
    scheduled: Schedule
    duration: Duration
    capacity: Capacity
    age: BatchAge
    base_price: Money = Field(ge=0, max_digits=12, decimal_places=2)
    status: PublishStatus = PublishStatus.DRAFT

    @model_validator(mode="after")
    def _starts_today_or_later(self):
        if self.scheduled.start_date < utc_now().date():
            raise ValueError("Start date cannot be in the past")
        return self


class BatchUpdate(_BatchFields):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    sport_id: UUID | None = None
    is_active: bool | None = None


class BatchOut(BaseSchema):
    id: UUID
    name: str
    center_id: UUID
    sport_id: UUID
    coach_id: UUID | None = None
    scheduled: Schedule
    duration: Duration
    capacity: Capacity
    age: BatchAge
    admission_fee: Amount | None = None
    base_price: Amount
    discounted_price: Amount | None = None
    fee_structure: FeeStructure | None = None
    is_allowed_disabled: bool
    gender: list[Gender] = Field(default_factory=list)
    certificate_issued: bool
    status: PublishStatus
    is_active: bool
    created_at: datetime
    updated_at: datetime


BatchPage = Page[BatchOut]


__all__ = [
    "BatchAge",
    "BatchCreate",
    "BatchOut",
    "BatchPage",
    "BatchUpdate",
    "Capacity",
    "Duration",
    "DurationType",
    "FeeStructure",
    "IndividualTiming",
    "Schedule",
]
