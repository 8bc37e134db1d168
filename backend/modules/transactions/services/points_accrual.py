# backend/modules/transactions/services/points_accrual.py

"""Loyalty points earned by a purchase."""

from decimal import ROUND_FLOOR, Decimal
from typing import Optional

from core.config import get_settings


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def base_points(final_amount: Decimal, divisor: Optional[int] = None) -> int:
    """One point per ``divisor`` currency units of the final amount, rounded down"""
    divisor = divisor or get_settings().points_currency_divisor
    if final_amount <= 0:
        return 0
    return _floor(Decimal(final_amount) / Decimal(divisor))


def tier_points(base: int, multiplier: Optional[Decimal]) -> int:
    if multiplier is None:
        return base
    return _floor(Decimal(base) * Decimal(multiplier))


def campaign_bonus_points(base: int, points_multiplier: Optional[Decimal]) -> int:
    """Extra points of a LOYALTY_POINTS campaign on top of the base"""
    if points_multiplier is None or Decimal(points_multiplier) <= 1:
        return 0
    return _floor(Decimal(base) * (Decimal(points_multiplier) - 1))
