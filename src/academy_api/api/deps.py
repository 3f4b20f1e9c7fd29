"""Request-scoped dependencies shared by routers.

Routers import session, settings and service constructors from here so that
each feature's router stays declarative.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from academy_api.db.session import get_db_read, get_db_write
from academy_api.settings import Settings, get_settings

WriteSessionDep = Annotated[Session, Depends(get_db_write)]
ReadSessionDep = Annotated[Session, Depends(get_db_read)]


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if isinstance(settings, Settings) else get_settings()


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_payment_gateway(request: Request, settings: SettingsDep):
    """Return the Razorpay client cached on the application."""

    from academy_api.integrations.razorpay import get_gateway_from_app

    return get_gateway_from_app(request.app, settings)


def get_sms_sender(request: Request, settings: SettingsDep):
    from academy_api.integrations.sms import get_sms_sender_from_app

    return get_sms_sender_from_app(request.app, settings)


def get_email_sender(request: Request, settings: SettingsDep):
    from academy_api.integrations.mailer import get_email_sender_from_app

    return get_email_sender_from_app(request.app, settings)


def get_identity_provider(request: Request, settings: SettingsDep):
    from academy_api.integrations.identity import get_identity_provider_from_app

    return get_identity_provider_from_app(request.app, settings)


def get_otp_service(session: WriteSessionDep, settings: SettingsDep, request: Request):
    from academy_api.features.auth.otp import OtpService

    return OtpService(
        session=session,
        settings=settings,
        sms_sender=get_sms_sender(request, settings),
        email_sender=get_email_sender(request, settings),
    )


def get_auth_service(session: WriteSessionDep, settings: SettingsDep):
    from academy_api.features.auth.service import AuthService

    return AuthService(session=session, settings=settings)


def get_users_service(session: WriteSessionDep, settings: SettingsDep):
    from academy_api.features.users.service import UsersService

    return UsersService(session=session, settings=settings)


def get_rbac_service(session: WriteSessionDep):
    from academy_api.features.rbac.service import RbacService

    return RbacService(session=session)


def get_participants_service(session: WriteSessionDep):
    from academy_api.features.participants.service import ParticipantsService

    return ParticipantsService(session=session)


def get_sports_service(session: WriteSessionDep):
    from academy_api.features.sports.service import SportsService

    return SportsService(session=session)


def get_facilities_service(session: WriteSessionDep):
    from academy_api.features.facilities.service import FacilitiesService

    return FacilitiesService(session=session)


def get_locations_service(session: WriteSessionDep):
    from academy_api.features.locations.service import LocationsService

    return LocationsService(session=session)


def get_centers_service(session: WriteSessionDep):
    from academy_api.features.centers.service import CentersService

    return CentersService(session=session)


def get_fee_types_service(session: WriteSessionDep):
    from academy_api.features.fee_types.service import FeeTypesService

    return FeeTypesService(session=session)


def get_batches_service(session: WriteSessionDep):
    from academy_api.features.batches.service import BatchesService

    return BatchesService(session=session)


def get_platform_settings_service(session: WriteSessionDep, settings: SettingsDep):
    from academy_api.features.platform_settings.service import PlatformSettingsService

    return PlatformSettingsService(session=session, settings=settings)


def get_bookings_service(
    session: WriteSessionDep,
    settings: SettingsDep,
    request: Request,
):
    from academy_api.features.bookings.service import BookingsService

    return BookingsService(
        session=session,
        settings=settings,
        gateway=get_payment_gateway(request, settings),
    )


def get_transactions_service(session: WriteSessionDep, settings: SettingsDep, request: Request):
    from academy_api.features.payments.service import TransactionsService

    return TransactionsService(
        session=session,
        settings=settings,
        gateway=get_payment_gateway(request, settings),
    )


def get_webhooks_service(session: WriteSessionDep, settings: SettingsDep):
    from academy_api.features.payments.webhooks import WebhookService

    return WebhookService(session=session, settings=settings)


def get_cms_service(session: WriteSessionDep):
    from academy_api.features.cms.service import CmsService

    return CmsService(session=session)


def get_banners_service(session: WriteSessionDep):
    from academy_api.features.banners.service import BannersService

    return BannersService(session=session)


def get_notifications_service(session: WriteSessionDep, settings: SettingsDep, request: Request):
    from academy_api.features.notifications.service import NotificationsService

    return NotificationsService(
        session=session,
        sms_sender=get_sms_sender(request, settings),
        email_sender=get_email_sender(request, settings),
    )


def get_dashboard_service(session: ReadSessionDep):
    from academy_api.features.dashboard.service import DashboardService

    return DashboardService(session=session)


__all__ = [
    "ReadSessionDep",
    "SettingsDep",
    "WriteSessionDep",
    "get_app_settings",
]
