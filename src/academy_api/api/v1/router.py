"""Compose the versioned API router from each feature's routers."""

from __future__ import annotations

from fastapi import APIRouter

from academy_api.features.auth import router as auth
from academy_api.features.banners import router as banners
from academy_api.features.batches import router as batches
from academy_api.features.bookings import router as bookings
from academy_api.features.centers import router as centers
from academy_api.features.cms import router as cms
from academy_api.features.dashboard import router as dashboard
from academy_api.features.facilities import router as facilities
from academy_api.features.fee_types import router as fee_types
from academy_api.features.locations import router as locations
from academy_api.features.notifications import router as notifications
from academy_api.features.participants import router as participants
from academy_api.features.payments import router as payments
from academy_api.features.platform_settings import router as platform_settings
from academy_api.features.rbac import router as rbac
from academy_api.features.sports import router as sports
from academy_api.features.users import router as users


def _user_routers() -> list[APIRouter]:
    return [
        auth.user_router,
        participants.router,
        bookings.user_router,
        payments.user_router,
        notifications.user_router,
    ]


def _academy_routers() -> list[APIRouter]:
    return [
        auth.academy_router,
        centers.academy_router,
        batches.academy_router,
        bookings.academy_router,
        fee_types.academy_router,
        notifications.academy_router,
        dashboard.academy_router,
    ]


def _admin_routers() -> list[APIRouter]:
    return [
        auth.admin_router,
        users.router,
        rbac.roles_router,
        rbac.permissions_router,
        sports.admin_router,
        facilities.admin_router,
        locations.admin_router,
        fee_types.admin_router,
        centers.admin_router,
        batches.admin_router,
        bookings.admin_router,
        payments.refunds_router,
        payments.admin_router,
        cms.admin_router,
        banners.admin_router,
        notifications.admin_router,
        platform_settings.admin_router,
        dashboard.admin_router,
    ]


def _public_routers() -> list[APIRouter]:
    return [
        sports.public_router,
        facilities.public_router,
        locations.public_router,
        centers.public_router,
        batches.public_router,
        cms.public_router,
        banners.public_router,
        platform_settings.public_router,
        payments.webhooks_router,
    ]


def create_api_router() -> APIRouter:
    """Return the router mounted under ``/api/v1``."""

    api_router = APIRouter()
    for group in (_user_routers(), _academy_routers(), _admin_routers(), _public_routers()):
        for router in group:
            api_router.include_router(router)
    return api_router


__all__ = ["create_api_router"]
