"""Import every ORM model so ``Base.metadata`` is complete."""

from __future__ import annotations

from academy_api.features.auth.models import (
    DeviceType,
    OtpChannel,
    OtpCode,
    OtpMode,
    RefreshSession,
    RevokedToken,
)
from academy_api.features.banners.models import Banner, BannerAudience, BannerPosition, BannerStatus
from academy_api.features.batches.models import Batch
from academy_api.features.bookings.models import Booking, BookingStatus, PaymentStatus
from academy_api.features.centers.models import ApprovalStatus, CoachingCenter, PublishStatus
from academy_api.features.cms.models import CmsPage, CmsPlatform
from academy_api.features.facilities.models import Facility
from academy_api.features.fee_types.models import FeeTypeConfig
from academy_api.features.locations.models import City, Country, State
from academy_api.features.notifications.models import (
    Notification,
    NotificationChannel,
    NotificationPriority,
    RecipientType,
)
from academy_api.features.participants.models import Participant
from academy_api.features.payments.models import (
    Transaction,
    TransactionSource,
    TransactionStatus,
    TransactionType,
)
from academy_api.features.platform_settings.models import PlatformSetting
from academy_api.features.rbac.models import Action, Permission, Role, RoleName, Section
from academy_api.features.sports.models import Sport
from academy_api.features.users.models import Gender, RegistrationMethod, User, UserType

__all__ = [
    "Action",
    "ApprovalStatus",
    "Banner",
    "BannerAudience",
    "BannerPosition",
    "BannerStatus",
    "Batch",
    "Booking",
    "BookingStatus",
    "City",
    "CmsPage",
    "CmsPlatform",
    "CoachingCenter",
    "Country",
    "DeviceType",
    "Facility",
    "FeeTypeConfig",
    "Gender",
    "Notification",
    "NotificationChannel",
    "NotificationPriority",
    "OtpChannel",
    "OtpCode",
    "OtpMode",
    "Participant",
    "PaymentStatus",
    "Permission",
    "PlatformSetting",
    "PublishStatus",
    "RecipientType",
    "RefreshSession",
    "RegistrationMethod",
    "RevokedToken",
    "Role",
    "RoleName",
    "Section",
    "Sport",
    "State",
    "Transaction",
    "TransactionSource",
    "TransactionStatus",
    "TransactionType",
    "User",
    "UserType",
]
