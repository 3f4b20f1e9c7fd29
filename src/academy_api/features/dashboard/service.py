"""Read-only aggregates for the admin and academy dashboards."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from academy_api.common.validators import utc_now
from academy_api.features.batches.models import Batch
from academy_api.features.bookings.models import Booking, BookingStatus, PaymentStatus
from academy_api.features.bookings.pricing import round2, to_decimal
from academy_api.features.centers.models import ApprovalStatus, CoachingCenter, PublishStatus
from academy_api.features.participants.models import Participant
from academy_api.features.payments.ledger import REFUND_TYPES
from academy_api.features.payments.models import Transaction, TransactionStatus, TransactionType
from academy_api.features.rbac.models import Role
from academy_api.features.users.models import User

from .schemas import (
    AcademyDashboard,
    AcademyRevenue,
    AdminDashboard,
    BookingStats,
    CenterStats,
    CountStat,
    RevenueStats,
    UserStats,
)


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class DashboardService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    def _count(self, model: Any, *conditions: Any) -> int:
        stmt = select(func.count()).select_from(model).where(*conditions)
        return int(self._session.execute(stmt).scalar_one())

    def _soft_delete_stat(self, model: Any, *conditions: Any) -> CountStat:
        live = (model.is_deleted.is_(False), *conditions)
        return CountStat(
            total=self._count(model, *live),
            active=self._count(model, *live, model.is_active.is_(True)),
        )

    def _bookings_by_status(self, *conditions: Any) -> BookingStats:
        stmt = (
            select(Booking.status, func.count())
            .where(Booking.is_deleted.is_(False), *conditions)
            .group_by(Booking.status)
        )
        by_status = {status.value: 0 for status in BookingStatus}
        for status, count in self._session.execute(stmt):
            by_status[BookingStatus(status).value] = int(count)
        return BookingStats(total=sum(by_status.values()), by_status=by_status)

    def _transaction_sum(self, types: Any, since: datetime | None = None) -> Decimal:
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.type.in_(types),
            Transaction.status == TransactionStatus.SUCCESS,
        )
        if since is not None:
            stmt = stmt.where(Transaction.created_at >= since)
        return round2(self._session.execute(stmt).scalar_one())

    def admin_stats(self) -> AdminDashboard:
        live_user = User.is_deleted.is_(False)
        since = month_start(utc_now())
        payments = (TransactionType.PAYMENT,)
        refunds = self._transaction_sum(REFUND_TYPES)
        month_net = self._transaction_sum(payments, since) - self._transaction_sum(
            REFUND_TYPES, since
        )

        return AdminDashboard(
            users=UserStats(
                total=self._count(User, live_user),
                active=self._count(User, live_user, User.is_active.is_(True)),
                students=self._count(User, live_user, User.roles.any(Role.name == "user")),
                academies=self._count(User, live_user, User.roles.any(Role.name == "academy")),
            ),
            coaching_centers=CenterStats(
                **self._soft_delete_stat(CoachingCenter).model_dump(),
                published=self._count(
                    CoachingCenter,
                    CoachingCenter.is_deleted.is_(False),
                    CoachingCenter.status == PublishStatus.PUBLISHED,
                ),
                pending_approval=self._count(
                    CoachingCenter,
                    CoachingCenter.is_deleted.is_(False),
                    CoachingCenter.approval_status == ApprovalStatus.PENDING,
                ),
            ),
            batches=self._soft_delete_stat(Batch),
            participants=self._soft_delete_stat(Participant),
            bookings=self._bookings_by_status(),
            revenue=RevenueStats(
                total=round2(self._transaction_sum(payments) - refunds),
                current_month=round2(month_net),
                refunds=refunds,
            ),
        )

    def academy_stats(self, owner: User) -> AcademyDashboard:
        center_ids = list(
            self._session.execute(
                select(CoachingCenter.id).where(
                    CoachingCenter.owner_id == owner.id, CoachingCenter.is_deleted.is_(False)
                )
            ).scalars()
        )
        owned_booking = Booking.center_id.in_(center_ids)
        since = month_start(utc_now())

        paid = self._session.execute(
            select(Booking.amount, Booking.commission, Booking.paid_at, Booking.created_at).where(
                owned_booking,
                Booking.is_deleted.is_(False),
                Booking.payment_status == PaymentStatus.SUCCESS,
            )
        ).all()
        gross = payout = month_payout = Decimal("0")
        for amount, commission, paid_at, created_at in paid:
            share = to_decimal((commission or {}).get("payout_amount", amount))
            gross += to_decimal(amount)
            payout += share
            if (paid_at or created_at) >= since:
                month_payout += share

        return AcademyDashboard(
            coaching_centers=self._soft_delete_stat(
                CoachingCenter, CoachingCenter.owner_id == owner.id
            ),
            batches=self._soft_delete_stat(Batch, Batch.center_id.in_(center_ids)),
            bookings=self._bookings_by_status(owned_booking),
            revenue=AcademyRevenue(
                gross=round2(gross),
                payout=round2(payout),
                current_month_payout=round2(month_payout),
            ),
        )


__all__ = ["DashboardService", "month_start"]
