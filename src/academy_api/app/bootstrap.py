"""Idempotent data bootstrap shared by the lifespan and the ``seed`` command."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.common.logging import log_context
from academy_api.core.security.hashing import hash_password
from academy_api.features.fee_types.service import FeeTypesService
from academy_api.features.platform_settings.service import PlatformSettingsService
from academy_api.features.rbac.models import Role, RoleName
from academy_api.features.rbac.service import RbacService
from academy_api.features.users.models import RegistrationMethod, User
from academy_api.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SeedReport:
    fee_types_created: int = 0
    super_admin_created: bool = False


def ensure_super_admin(session: Session, settings: Settings) -> bool:
    """Create the configured super admin once; returns ``True`` when created."""

    if not settings.super_admin_email or settings.super_admin_password is None:
        return False
    email = settings.super_admin_email.strip().lower()
    existing = session.scalar(select(User).where(User.email == email))
    role = session.scalar(select(Role).where(Role.name == RoleName.SUPER_ADMIN.value))
    if role is None:
        raise RuntimeError("System roles must be synced before creating the super admin.")
    if existing is not None:
        if not existing.has_role(RoleName.SUPER_ADMIN.value):
            existing.roles.append(role)
            session.flush()
        return False

    user = User(
        first_name="Super",
        last_name="Admin",
        email=email,
        password_hash=hash_password(settings.super_admin_password.get_secret_value()),
        registration_method=RegistrationMethod.EMAIL,
        favorite_sport_ids=[],
    )
    user.roles = [role]
    session.add(user)
    session.flush()
    logger.info("bootstrap.super_admin.created", extra=log_context(user_id=user.id))
    return True


def seed_defaults(session: Session, settings: Settings) -> SeedReport:
    """Roles with default grants, fee-type configs, the settings row and a super admin."""

    RbacService(session=session).sync_system_roles()
    report = SeedReport()
    report.fee_types_created = FeeTypesService(session=session).seed_defaults()
    PlatformSettingsService(session=session, settings=settings).get_row()
    report.super_admin_created = ensure_super_admin(session, settings)
    logger.info(
        "bootstrap.seed.complete",
        extra=log_context(
            fee_types_created=report.fee_types_created,
            super_admin_created=report.super_admin_created,
        ),
    )
    return report


__all__ = ["SeedReport", "ensure_super_admin", "seed_defaults"]
