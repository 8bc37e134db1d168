# backend/modules/campaigns/services/discounts.py

"""
Applying a campaign to a concrete basket.

Eligibility says whether a customer may redeem a campaign at all; the
checks here say whether it applies to this basket at this moment, and what
it is worth. Amounts are quantized to 0.01 with ROUND_HALF_UP.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence

from ..models.campaign_models import Campaign, CampaignType, DiscountType

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(amount) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class BasketLine:
    product_id: Optional[int]
    quantity: int
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return quantize(self.unit_price * self.quantity)


@dataclass
class DiscountResult:
    amount: Decimal
    line_discounts: Dict[int, Decimal]  # basket index -> amount


def _parse_time(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def within_valid_hours(valid_hours: Optional[dict], at: datetime) -> bool:
    if not valid_hours:
        return True
    start = _parse_time(valid_hours["start"])
    end = _parse_time(valid_hours["end"])
    now = at.time().replace(second=0, microsecond=0)
    if start <= end:
        return start <= now <= end
    # window wraps past midnight
    return now >= start or now <= end


def within_valid_days(valid_days: Optional[Sequence[int]], at: datetime) -> bool:
    return not valid_days or at.isoweekday() in valid_days


def applicability_error(
    campaign: Campaign,
    subtotal: Decimal,
    at: datetime,
    birth_date: Optional[date] = None,
) -> Optional[str]:
    """Why an eligible campaign does not apply to this basket, or None"""
    if campaign.min_purchase is not None and subtotal < Decimal(campaign.min_purchase):
        return f"Minimum purchase of {quantize(campaign.min_purchase)} not reached"
    if not within_valid_hours(campaign.valid_hours, at):
        return "Campaign is not valid at this hour"
    if not within_valid_days(campaign.valid_days, at):
        return "Campaign is not valid on this day"
    if campaign.type == CampaignType.BIRTHDAY_SPECIAL:
        if birth_date is None:
            return "Customer has no birth date"
        if birth_date.month != at.month:
            return "Campaign is only valid in the customer's birthday month"
    return None


def calculate_discount(campaign: Campaign, lines: List[BasketLine]) -> DiscountResult:
    """Discount of one campaign on the basket, never more than the subtotal"""
    subtotal = sum((line.total for line in lines), ZERO)
    value = Decimal(campaign.discount_value or 0)
    line_discounts: Dict[int, Decimal] = {}

    if campaign.discount_type == DiscountType.PERCENTAGE:
        amount = quantize(subtotal * value / Decimal(100))

    elif campaign.discount_type == DiscountType.FIXED_AMOUNT:
        amount = quantize(min(value, subtotal))

    elif campaign.discount_type == DiscountType.FREE_ITEM:
        free_products = set(campaign.free_products or [])
        candidates = [
            (index, line) for index, line in enumerate(lines)
            if line.product_id is not None and line.product_id in free_products
        ]
        if candidates:
            index, cheapest = min(candidates, key=lambda pair: pair[1].unit_price)
            amount = quantize(cheapest.unit_price)
            line_discounts[index] = amount
        else:
            amount = ZERO

    elif campaign.discount_type == DiscountType.BUY_ONE_GET_ONE:
        targets = set(campaign.target_products or [])
        amount = ZERO
        for index, line in enumerate(lines):
            if targets and line.product_id not in targets:
                continue
            free_units = line.quantity // 2
            if free_units:
                line_amount = quantize(line.unit_price * free_units)
                line_discounts[index] = line_amount
                amount += line_amount

    else:
        amount = ZERO

    return DiscountResult(amount=min(amount, subtotal), line_discounts=line_discounts)
