"""Check a batch's ``fee_configuration`` against its fee type's form fields."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from academy_api.common.errors import ErrorItem

from .schemas import FormFieldType

_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_value(field: Mapping[str, Any], value: Any, path: str, errors: list[ErrorItem]) -> None:
    kind = FormFieldType(field["type"])
    label = field.get("label") or field["name"]

    def fail(message: str) -> None:
        errors.append(ErrorItem(field=path, message=message))

    if kind is FormFieldType.NUMBER:
        if not _is_number(value):
            fail(f"{label} must be a number")
            return
        if field.get("min") is not None and value < field["min"]:
            fail(f"{label} must be at least {field['min']:g}")
        if field.get("max") is not None and value > field["max"]:
            fail(f"{label} must be at most {field['max']:g}")
    elif kind is FormFieldType.TEXT:
        if not isinstance(value, str):
            fail(f"{label} must be text")
    elif kind is FormFieldType.CHECKBOX:
        if not isinstance(value, bool):
            fail(f"{label} must be true or false")
    elif kind is FormFieldType.SELECT:
        allowed = [option["value"] for option in field.get("options") or []]
        if value not in allowed:
            fail(f"{label} must be one of: {', '.join(str(option) for option in allowed)}")
    elif kind is FormFieldType.DATE:
        try:
            date.fromisoformat(str(value))
        except ValueError:
            fail(f"{label} must be a date (YYYY-MM-DD)")
    elif kind is FormFieldType.TIME:
        if not isinstance(value, str) or not _TIME.match(value):
            fail(f"{label} must be a time (HH:MM)")
    elif kind is FormFieldType.OBJECT:
        if not isinstance(value, Mapping):
            fail(f"{label} must be an object")
            return
        _check_fields(field.get("fields") or [], value, f"{path}.", errors)
    elif kind is FormFieldType.ARRAY:
        if not isinstance(value, list):
            fail(f"{label} must be a list")
            return
        if field.get("required") and not value:
            fail(f"{label} must contain at least one entry")
        for index, item in enumerate(value):
            if not isinstance(item, Mapping):
                errors.append(ErrorItem(field=f"{path}.{index}", message="Entry must be an object"))
                continue
            _check_fields(field.get("fields") or [], item, f"{path}.{index}.", errors)


def _check_fields(
    fields: Sequence[Mapping[str, Any]],
    values: Mapping[str, Any],
    prefix: str,
    errors: list[ErrorItem],
) -> None:
    for field in fields:
        name = field["name"]
        path = f"{prefix}{name}"
        value = values.get(name)
        if _is_blank(value):
            if field.get("required"):
                label = field.get("label") or name
                errors.append(ErrorItem(field=path, message=f"{label} is required"))
            continue
        _check_value(field, value, path, errors)


def validate_fee_configuration(
    form_fields: Sequence[Mapping[str, Any]],
    configuration: Mapping[str, Any],
) -> list[ErrorItem]:
    """Every problem found in ``configuration``; empty when it satisfies the form."""

    errors: list[ErrorItem] = []
    _check_fields(form_fields, configuration, "fee_structure.fee_configuration.", errors)
    return errors


def round_amounts(value: Any) -> Any:
    """Round every float inside ``value`` to two decimal places."""

    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    if isinstance(value, list):
        return [round_amounts(item) for item in value]
    if isinstance(value, Mapping):
        return {key: round_amounts(item) for key, item in value.items()}
    return value


__all__ = ["round_amounts", "validate_fee_configuration"]
