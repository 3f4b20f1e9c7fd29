"""Shared Pydantic schema utilities."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, PlainSerializer

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base class for all API schemas."""

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
        extra="ignore",
        ser_json_timedelta="iso8601",
    )

    def serializable_dict(
        self,
        *,
        exclude_none: bool = True,
        by_alias: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Return a dict representation suited for JSON responses."""

        return self.model_dump(
            mode="json", exclude_none=exclude_none, by_alias=by_alias, **kwargs
        )


# Monetary values serialize as JSON numbers rather than strings.
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class InputSchema(BaseSchema):
    """Request bodies reject unknown keys."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class ApiResponse(BaseSchema, Generic[T]):
    """Success envelope: ``{success, message, data}``."""

    success: bool = True
    message: str = "OK"
    data: T | None = None


def ok(data: Any = None, message: str = "OK") -> ApiResponse[Any]:
    return ApiResponse(success=True, message=message, data=data)


__all__ = ["Amount", "ApiResponse", "BaseSchema", "InputSchema", "ok"]
