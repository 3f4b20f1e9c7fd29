"""Platform settings stored in a single row, with configuration fallbacks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from academy_api.common.logging import log_context
from academy_api.features.users.models import User
from academy_api.settings import Settings

from .models import SETTINGS_ROW_ID, PlatformSetting
from .schemas import (
    BasicInfo,
    ContactSettings,
    FeeSettings,
    NotificationToggles,
    PlatformSettingsOut,
    PlatformSettingsUpdate,
    PublicFeeSettings,
    PublicSettingsOut,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EffectiveFees:
    """Fee inputs used when pricing a booking."""

    platform_fee: float
    gst_percentage: float
    gst_enabled: bool
    commission_rate: float
    currency: str


class PlatformSettingsService:
    def __init__(self, *, session: Session, settings: Settings) -> None:
        self._session = session
        self._settings = settings

    def get_row(self) -> PlatformSetting:
        row = self._session.get(PlatformSetting, SETTINGS_ROW_ID)
        if row is None:
            row = PlatformSetting(
                id=SETTINGS_ROW_ID,
                fees={},
                contact={},
                basic_info={"app_name": self._settings.app_name},
                notifications={},
            )
            self._session.add(row)
            self._session.flush()
        return row

    def effective_fees(self) -> EffectiveFees:
        """Stored fee values win; missing ones fall back to configuration."""

        row = self._session.get(PlatformSetting, SETTINGS_ROW_ID)
        stored: dict[str, Any] = dict(row.fees or {}) if row is not None else {}

        def pick(key: str, default: Any) -> Any:
            value = stored.get(key)
            return default if value is None else value

        return EffectiveFees(
            platform_fee=float(pick("platform_fee", self._settings.booking_platform_fee)),
            gst_percentage=float(pick("gst_percentage", self._settings.booking_gst_percentage)),
            gst_enabled=bool(pick("gst_enabled", self._settings.booking_gst_enabled)),
            commission_rate=float(
                pick("commission_rate", self._settings.booking_commission_rate)
            ),
            currency=str(pick("currency", self._settings.booking_currency)).upper(),
        )

    def current(self) -> PlatformSettingsOut:
        row = self.get_row()
        fees = self.effective_fees()
        return PlatformSettingsOut(
            fees=FeeSettings(
                platform_fee=fees.platform_fee,
                gst_percentage=fees.gst_percentage,
                gst_enabled=fees.gst_enabled,
                commission_rate=fees.commission_rate,
                currency=fees.currency,
            ),
            contact=ContactSettings.model_validate(row.contact or {}),
            basic_info=BasicInfo.model_validate(row.basic_info or {}),
            notifications=NotificationToggles.model_validate(row.notifications or {}),
            updated_at=row.updated_at,
        )

    def public(self) -> PublicSettingsOut:
        current = self.current()
        return PublicSettingsOut(
            fees=PublicFeeSettings(
                platform_fee=current.fees.platform_fee,
                gst_percentage=current.fees.gst_percentage,
                gst_enabled=current.fees.gst_enabled,
                currency=current.fees.currency,
            ),
            contact=current.contact,
            basic_info=current.basic_info,
        )

    def update(self, payload: PlatformSettingsUpdate, *, actor: User) -> PlatformSettingsOut:
        row = self.get_row()
        changed: list[str] = []
        for section in ("fees", "contact", "basic_info", "notifications"):
            incoming = getattr(payload, section)
            if incoming is None:
                continue
            values = incoming.model_dump(mode="json", exclude_unset=True)
            if section == "fees" and values.get("currency"):
                values["currency"] = values["currency"].upper()
            # Reassign so the JSON column registers the change.
            setattr(row, section, {**(getattr(row, section) or {}), **values})
            changed.append(section)
        self._session.flush()
        logger.info(
            "platform_settings.update.success",
            extra=log_context(user_id=actor.id, sections=",".join(changed)),
        )
        return self.current()


__all__ = ["EffectiveFees", "PlatformSettingsService"]
