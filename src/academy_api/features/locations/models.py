"""Country, state and city hierarchy."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy_api.db import Base, SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin, UUIDType


class Country(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "countries"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    iso_code: Mapped[str | None] = mapped_column(String(3), nullable=True, unique=True)
    phone_code: Mapped[str | None] = mapped_column(String(8), nullable=True)


class State(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "states"
    __table_args__ = (UniqueConstraint("country_id", "name", name="states_country_name"),)

    country_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("countries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(10), nullable=True)

    country: Mapped[Country] = relationship(Country, lazy="joined")


class City(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "cities"
    __table_args__ = (UniqueConstraint("state_id", "name", name="cities_state_name"),)

    state_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("states.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    state: Mapped[State] = relationship(State, lazy="joined")


__all__ = ["City", "Country", "State"]
