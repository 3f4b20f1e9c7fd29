"""Database package: declarative base, engine and session helpers."""

from .base import Base, SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin, enum_values, utc_now
from .types import Money, UTCDateTime, UUIDType

__all__ = [
    "Base",
    "Money",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UTCDateTime",
    "UUIDPrimaryKeyMixin",
    "UUIDType",
    "enum_values",
    "utc_now",
]
