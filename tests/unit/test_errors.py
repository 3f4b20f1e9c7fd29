from __future__ import annotations

import pytest
from pydantic import BaseModel, Field, ValidationError, field_validator

from academy_api.common.errors import (
    ApiError,
    ErrorItem,
    bad_request,
    default_message,
    error_items_from_pydantic,
    unauthorized,
)


class Payload(BaseModel):
    name: str = Field(min_length=2)
    age: int

    @field_validator("name")
    @classmethod
    def _no_digits(cls, value: str) -> str:
        if any(char.isdigit() for char in value):
            raise ValueError("Name must not contain digits")
        return value


def test_pydantic_errors_are_flattened() -> None:
    with pytest.raises(ValidationError) as excinfo:
        Payload.model_validate({"name": "R2"})

    items = {item.field: item.message for item in error_items_from_pydantic(excinfo.value.errors())}

    assert items["name"] == "Name must not contain digits"
    assert "age" in items


def test_request_locations_are_stripped() -> None:
    errors = [
        {"loc": ("body", "participants", 0), "msg": "Field required"},
        {"loc": ("query",), "msg": ""},
    ]
    items = error_items_from_pydantic(errors)

    assert items == [
        ErrorItem(field="participants.0", message="Field required"),
        ErrorItem(field="request", message="Invalid value"),
    ]


def test_api_error_defaults_message_from_status() -> None:
    error = ApiError(404)

    assert error.message == "Not found"
    assert error.to_envelope().model_dump() == {
        "success": False,
        "message": "Not found",
        "errors": None,
    }


def test_api_error_accepts_mapping_items() -> None:
    error = bad_request("Invalid", errors=[{"field": "mobile", "message": "Required"}])
    assert error.errors == [ErrorItem(field="mobile", message="Required")]


def test_unauthorized_sets_bearer_challenge() -> None:
    assert unauthorized().headers == {"WWW-Authenticate": "Bearer"}


def test_unknown_statuses_fall_back() -> None:
    assert default_message(418) == "Request failed"
    assert default_message(599) == "Internal server error"
