"""Single-row platform configuration editable from the admin panel."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Integer
from sqlalchemy.orm import Mapped, mapped_column

from academy_api.db import Base, TimestampMixin

SETTINGS_ROW_ID = 1


class PlatformSetting(TimestampMixin, Base):
    __tablename__ = "platform_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    fees: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    contact: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    basic_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    notifications: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)


__all__ = ["PlatformSetting", "SETTINGS_ROW_ID"]
