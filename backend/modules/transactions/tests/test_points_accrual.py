# backend/modules/transactions/tests/test_points_accrual.py

from decimal import Decimal

import pytest

from modules.transactions.services.points_accrual import (
    base_points,
    campaign_bonus_points,
    tier_points,
)


@pytest.mark.parametrize("amount,expected", [
    ("0", 0),
    ("9.99", 0),
    ("10", 1),
    ("99", 9),
    ("99.99", 9),
    ("100", 10),
    ("1234.50", 123),
])
def test_base_points_round_down(amount, expected):
    assert base_points(Decimal(amount), 10) == expected


def test_base_points_with_custom_divisor():
    assert base_points(Decimal("100"), 25) == 4


def test_base_points_uses_configured_divisor():
    # conftest configures one point per 10 currency units
    assert base_points(Decimal("55")) == 5


def test_negative_amount_earns_nothing():
    assert base_points(Decimal("-20"), 10) == 0


def test_tier_multiplier():
    assert tier_points(10, Decimal("2")) == 20
    assert tier_points(10, Decimal("1")) == 10
    assert tier_points(9, Decimal("1.5")) == 13
    assert tier_points(7, None) == 7


def test_campaign_bonus():
    assert campaign_bonus_points(10, Decimal("2")) == 10
    assert campaign_bonus_points(10, Decimal("1.25")) == 2
    assert campaign_bonus_points(10, Decimal("1")) == 0
    assert campaign_bonus_points(10, None) == 0
