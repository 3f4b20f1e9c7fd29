"""Admin-defined fee structure templates."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from academy_api.db import Base, SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class FeeTypeConfig(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Describes the form an academy fills in for one ``fee_type``."""

    __tablename__ = "fee_type_configs"

    fee_type: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    form_fields: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    validation_rules: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


__all__ = ["FeeTypeConfig"]
