"""Booking price and commission arithmetic.

All amounts are ``Decimal`` rounded half-up to two places. GST applies to the
platform fee only, never to the batch amount.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from academy_api.features.platform_settings.service import EffectiveFees

CENT = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")

# Rates this close to the bounds are treated as exactly 0% or 100%.
_RATE_EPSILON = Decimal("0.0001")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_paise(amount: Any) -> int:
    """Smallest currency unit for the payment gateway."""

    return int((round2(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def per_participant_fee(base_price: Any, discounted_price: Any | None) -> Decimal:
    discounted = to_decimal(discounted_price)
    if discounted_price is not None and discounted > ZERO:
        return discounted
    return to_decimal(base_price)


def normalize_commission_rate(rate: Any) -> Decimal:
    """Rates of 1 or more are percentages; the result is clamped to [0, 1]."""

    value = to_decimal(rate)
    if value >= ONE:
        value = value / 100
    return min(max(value, ZERO), ONE)


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    admission_fee_per_participant: Decimal
    total_admission_fee: Decimal
    base_fee_per_participant: Decimal
    total_base_fee: Decimal
    batch_amount: Decimal
    platform_fee: Decimal
    subtotal: Decimal
    gst_percentage: Decimal
    gst_amount: Decimal
    total_amount: Decimal
    participant_count: int
    currency: str

    def as_dict(self) -> dict[str, Any]:
        """JSON-friendly form stored on the booking row."""

        return {
            key: float(value) if isinstance(value, Decimal) else value
            for key, value in asdict(self).items()
        }


@dataclass(frozen=True, slots=True)
class Commission:
    rate: Decimal
    amount: Decimal
    payout_amount: Decimal

    def as_dict(self) -> dict[str, Any]:
        return {
            "rate": float(self.rate),
            "amount": float(self.amount),
            "payout_amount": float(self.payout_amount),
        }


def calculate_price(
    *,
    admission_fee: Any,
    base_price: Any,
    discounted_price: Any | None,
    participant_count: int,
    fees: EffectiveFees,
) -> PriceBreakdown:
    admission = round2(admission_fee)
    fee = round2(per_participant_fee(base_price, discounted_price))
    total_admission = round2(admission * participant_count)
    total_base = round2(fee * participant_count)
    batch_amount = round2(total_admission + total_base)

    platform_fee = round2(fees.platform_fee)
    gst_percentage = to_decimal(fees.gst_percentage)
    gst = round2(platform_fee * gst_percentage / 100) if fees.gst_enabled else round2(ZERO)

    return PriceBreakdown(
        admission_fee_per_participant=admission,
        total_admission_fee=total_admission,
        base_fee_per_participant=fee,
        total_base_fee=total_base,
        batch_amount=batch_amount,
        platform_fee=platform_fee,
        subtotal=round2(batch_amount + platform_fee),
        gst_percentage=gst_percentage,
        gst_amount=gst,
        total_amount=round2(batch_amount + platform_fee + gst),
        participant_count=participant_count,
        currency=fees.currency,
    )


def calculate_commission(base_amount: Any, commission_rate: Any) -> Commission:
    base = round2(base_amount)
    rate = normalize_commission_rate(commission_rate)
    amount = round2(base * rate)
    if rate < _RATE_EPSILON:
        payout = base
    elif rate >= ONE - _RATE_EPSILON:
        payout = round2(ZERO)
    else:
        payout = round2(base - amount)
    payout = min(max(payout, ZERO), base)
    return Commission(rate=rate, amount=amount, payout_amount=payout)


__all__ = [
    "Commission",
    "PriceBreakdown",
    "calculate_commission",
    "calculate_price",
    "normalize_commission_rate",
    "per_participant_fee",
    "round2",
    "to_decimal",
    "to_paise",
]
