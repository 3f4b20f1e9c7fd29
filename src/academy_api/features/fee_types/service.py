"""Admin-managed fee type definitions and batch fee structure validation."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_request, conflict, not_found
from academy_api.common.logging import log_context

from .defaults import DEFAULT_FEE_TYPES
from .models import FeeTypeConfig
from .schemas import FeeTypeConfigCreate, FeeTypeConfigUpdate, FormField
from .validation import round_amounts, validate_fee_configuration

logger = logging.getLogger(__name__)


class FeeTypesService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    def _by_type(self, fee_type: str) -> FeeTypeConfig | None:
        stmt = select(FeeTypeConfig).where(FeeTypeConfig.fee_type == fee_type)
        return self._session.execute(stmt).scalar_one_or_none()

    def get(self, config_id: UUID) -> FeeTypeConfig:
        config = self._session.get(FeeTypeConfig, config_id)
        if config is None or config.is_deleted:
            raise not_found("Fee type configuration not found")
        return config

    def list_configs(self, *, active_only: bool = False) -> list[FeeTypeConfig]:
        stmt = select(FeeTypeConfig).where(FeeTypeConfig.is_deleted.is_(False))
        if active_only:
            stmt = stmt.where(FeeTypeConfig.is_active.is_(True))
        return list(self._session.execute(stmt.order_by(FeeTypeConfig.fee_type)).scalars())

    def create(self, payload: FeeTypeConfigCreate) -> FeeTypeConfig:
        existing = self._by_type(payload.fee_type)
        if existing is not None and not existing.is_deleted:
            raise conflict("A configuration for this fee type already exists")
        data = payload.model_dump(mode="json")
        if existing is not None:
            config = existing
            config.is_deleted = False
            config.deleted_at = None
            for field, value in data.items():
                setattr(config, field, value)
        else:
            config = FeeTypeConfig(**data)
            self._session.add(config)
        self._session.flush()
        logger.info("fee_type.create.success", extra=log_context(fee_type=config.fee_type))
        return config

    def update(self, config_id: UUID, payload: FeeTypeConfigUpdate) -> FeeTypeConfig:
        config = self.get(config_id)
        changes = payload.model_dump(mode="json", exclude_unset=True)
        if "form_fields" in changes and changes["form_fields"] is not None:
            names = [field["name"] for field in changes["form_fields"]]
            if len(names) != len(set(names)):
                raise bad_request("Form field names must be unique")
        for field, value in changes.items():
            if value is None and field in {"label", "form_fields", "is_active"}:
                continue
            setattr(config, field, value)
        self._session.flush()
        logger.info(
            "fee_type.update.success",
            extra=log_context(fee_type=config.fee_type, fields=sorted(changes)),
        )
        return config

    def delete(self, config_id: UUID) -> None:
        config = self.get(config_id)
        config.soft_delete()
        self._session.flush()
        logger.info("fee_type.delete.success", extra=log_context(fee_type=config.fee_type))

    def validate_structure(self, fee_structure: dict[str, Any]) -> dict[str, Any]:
        """Validate a batch ``fee_structure`` and return it with amounts rounded."""

        fee_type = fee_structure.get("fee_type")
        config = self._by_type(fee_type) if fee_type else None
        if config is None or config.is_deleted or not config.is_active:
            raise bad_request(
                "Fee structure is invalid",
                errors=[{"field": "fee_structure.fee_type", "message": "Unknown fee type"}],
            )
        configuration = fee_structure.get("fee_configuration") or {}
        problems = validate_fee_configuration(config.form_fields, configuration)
        if problems:
            raise bad_request("Fee structure is invalid", errors=problems)
        return {"fee_type": fee_type, "fee_configuration": round_amounts(configuration)}

    def seed_defaults(self) -> int:
        created = 0
        for definition in DEFAULT_FEE_TYPES:
            if self._by_type(definition["fee_type"]) is not None:
                continue
            fields = [
                FormField.model_validate(field).model_dump(mode="json")
                for field in definition["form_fields"]
            ]
            self._session.add(FeeTypeConfig(**{**definition, "form_fields": fields}))
            created += 1
        self._session.flush()
        return created


__all__ = ["FeeTypesService"]
