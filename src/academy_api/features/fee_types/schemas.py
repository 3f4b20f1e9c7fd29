"""Fee-type configuration payloads and the recursive form-field shape."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import Field, model_validator

from academy_api.common.schema import BaseSchema, InputSchema


class FormFieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    CHECKBOX = "checkbox"
    DATE = "date"
    TIME = "time"
    ARRAY = "array"
    OBJECT = "object"


class FieldOption(BaseSchema):
    value: str | int | float
    label: str


class FormField(BaseSchema):
    name: str = Field(min_length=1, max_length=100, pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    label: str = Field(min_length=1, max_length=200)
    type: FormFieldType
    required: bool = False
    placeholder: str | None = None
    description: str | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None
    options: list[FieldOption] | None = None
    fields: list[FormField] | None = None

    @model_validator(mode="after")
    def _consistent(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"{self.name}: min must not exceed max")
        if self.type == FormFieldType.SELECT.value and not self.options:
            raise ValueError(f"{self.name}: select fields need options")
        if self.type in (FormFieldType.ARRAY.value, FormFieldType.OBJECT.value) and not self.fields:
            raise ValueError(f"{self.name}: {self.type} fields need nested fields")
        return self


class FeeTypeConfigOut(BaseSchema):
    id: UUID
    fee_type: str
    label: str
    description: str | None = None
    form_fields: list[FormField]
    validation_rules: dict[str, Any] | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class FeeTypeConfigCreate(InputSchema):
    fee_type: str = Field(min_length=1, max_length=50, pattern=r"^[a-z][a-z0-9_]*$")
    label: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    form_fields: list[FormField] = Field(min_length=1)
    validation_rules: dict[str, Any] | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def _unique_names(self):
        names = [field.name for field in self.form_fields]
        if len(names) != len(set(names)):
            raise ValueError("Form field names must be unique")
        return self


class FeeTypeConfigUpdate(InputSchema):
    label: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    form_fields: list[FormField] | None = Field(default=None, min_length=1)
    validation_rules: dict[str, Any] | None = None
    is_active: bool | None = None


__all__ = [
    "FeeTypeConfigCreate",
    "FeeTypeConfigOut",
    "FeeTypeConfigUpdate",
    "FieldOption",
    "FormField",
    "FormFieldType",
]
