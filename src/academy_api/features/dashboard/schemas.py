from __future__ import annotations

from academy_api.common.schema import Amount, BaseSchema


class CountStat(BaseSchema):
    total: int
    active: int


class UserStats(CountStat):
    students: int
    academies: int


class CenterStats(CountStat):
    published: int
    pending_approval: int


class BookingStats(BaseSchema):
    total: int
    by_status: dict[str, int]


class RevenueStats(BaseSchema):
    total: Amount
    current_month: Amount
    refunds: Amount


class AdminDashboard(BaseSchema):
    users: UserStats
    coaching_centers: CenterStats
    batches: CountStat
    participants: CountStat
    bookings: BookingStats
    revenue: RevenueStats


class AcademyRevenue(BaseSchema):
    gross: Amount
    payout: Amount
    current_month_payout: Amount


class AcademyDashboard(BaseSchema):
    coaching_centers: CountStat
    batches: CountStat
    bookings: BookingStats
    revenue: AcademyRevenue


__all__ = [
    "AcademyDashboard",
    "AcademyRevenue",
    "AdminDashboard",
    "BookingStats",
    "CenterStats",
    "CountStat",
    "RevenueStats",
    "UserStats",
]
