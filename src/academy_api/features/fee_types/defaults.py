"""Fee types available on a fresh install."""

from __future__ import annotations

from typing import Any

DEFAULT_FEE_TYPES: tuple[dict[str, Any], ...] = (
    {
        "fee_type": "monthly",
        "label": "Monthly fee",
        "description": "A fixed amount charged every month",
        "form_fields": [
            {
                "name": "amount",
                "label": "Monthly amount",
                "type": "number",
                "required": True,
                "min": 0,
            },
            {
                "name": "billing_day",
                "label": "Billing day of month",
                "type": "number",
                "required": False,
                "min": 1,
                "max": 28,
                "step": 1,
            },
        ],
    },
    {
        "fee_type": "per_session",
        "label": "Per session",
        "description": "Charged for each session attended",
        "form_fields": [
            {
                "name": "amount_per_session",
                "label": "Amount per session",
                "type": "number",
                "required": True,
                "min": 0,
            },
            {
                "name": "minimum_sessions",
                "label": "Minimum sessions",
                "type": "number",
                "required": False,
                "min": 1,
                "step": 1,
            },
        ],
    },
    {
        "fee_type": "package",
        "label": "Package",
        "description": "Bundles of sessions sold together",
        "form_fields": [
            {
                "name": "packages",
                "label": "Packages",
                "type": "array",
                "required": True,
                "fields": [
                    {"name": "name", "label": "Package name", "type": "text", "required": True},
                    {
                        "name": "sessions",
                        "label": "Sessions",
                        "type": "number",
                        "required": True,
                        "min": 1,
                        "step": 1,
                    },
                    {
                        "name": "amount",
                        "label": "Amount",
                        "type": "number",
                        "required": True,
                        "min": 0,
                    },
                    {
                        "name": "validity_unit",
                        "label": "Validity unit",
                        "type": "select",
                        "required": False,
                        "options": [
                            {"value": "day", "label": "Days"},
                            {"value": "week", "label": "Weeks"},
                            {"value": "month", "label": "Months"},
                        ],
                    },
                ],
            },
        ],
    },
)


__all__ = ["DEFAULT_FEE_TYPES"]
