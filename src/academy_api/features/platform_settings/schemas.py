from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from academy_api.common.schema import BaseSchema, InputSchema


class FeeSettings(BaseSchema):
    platform_fee: float = Field(default=0.0, ge=0)
    gst_percentage: float = Field(default=18.0, ge=0, le=100)
    gst_enabled: bool = True
    commission_rate: float = Field(default=0.0, ge=0, le=100)
    currency: str = Field(default="INR", min_length=3, max_length=3)


class PublicFeeSettings(BaseSchema):
    platform_fee: float
    gst_percentage: float
    gst_enabled: bool
    currency: str


class ContactAddress(BaseSchema):
    office: str | None = Field(default=None, max_length=500)
    registered: str | None = Field(default=None, max_length=500)


class ContactSettings(BaseSchema):
    numbers: list[str] = Field(default_factory=list)
    email: EmailStr | None = None
    address: ContactAddress | None = None
    whatsapp: str | None = Field(default=None, max_length=20)
    instagram: str | None = Field(default=None, max_length=300)
    facebook: str | None = Field(default=None, max_length=300)
    youtube: str | None = Field(default=None, max_length=300)


class BasicInfo(BaseSchema):
    app_name: str | None = Field(default=None, max_length=100)
    app_logo: str | None = Field(default=None, max_length=500)
    about_us: str | None = Field(default=None, max_length=5000)
    support_email: EmailStr | None = None
    support_phone: str | None = Field(default=None, max_length=20)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)


class NotificationToggles(BaseSchema):
    enabled: bool = True
    sms: bool = True
    email: bool = True
    whatsapp: bool = False
    push: bool = False


class PlatformSettingsOut(BaseSchema):
    fees: FeeSettings
    contact: ContactSettings
    basic_info: BasicInfo
    notifications: NotificationToggles
    updated_at: datetime | None = None


class PublicSettingsOut(BaseSchema):
    fees: PublicFeeSettings
    contact: ContactSettings
    basic_info: BasicInfo


class FeeSettingsUpdate(InputSchema):
    platform_fee: float | None = Field(default=None, ge=0)
    gst_percentage: float | None = Field(default=None, ge=0, le=100)
    gst_enabled: bool | None = None
    commission_rate: float | None = Field(default=None, ge=0, le=100)
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class PlatformSettingsUpdate(InputSchema):
    """Sections are merged key by key into the stored row."""

    fees: FeeSettingsUpdate | None = None
    contact: ContactSettings | None = None
    basic_info: BasicInfo | None = None
    notifications: NotificationToggles | None = None


__all__ = [
    "BasicInfo",
    "ContactAddress",
    "ContactSettings",
    "FeeSettings",
    "FeeSettingsUpdate",
    "NotificationToggles",
    "PlatformSettingsOut",
    "PlatformSettingsUpdate",
    "PublicFeeSettings",
    "PublicSettingsOut",
]
