"""Schemas for the health endpoints."""

from __future__ import annotations

from typing import Literal

from academy_api.common.schema import BaseSchema


class HealthResponse(BaseSchema):
    status: Literal["ok"] = "ok"
    version: str | None = None


__all__ = ["HealthResponse"]
