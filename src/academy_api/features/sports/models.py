"""Sport catalog table."""

from __future__ import annotations

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from academy_api.db import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Sport(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "sports"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    name_canonical: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    logo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_popular: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


__all__ = ["Sport"]
