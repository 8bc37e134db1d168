# backend/modules/customers/tests/test_tier_service.py

from decimal import Decimal

import pytest
from pydantic import ValidationError

from core.error_handling import ConflictError, NotFoundError
from modules.customers.models.customer_models import CustomerLevel
from modules.customers.schemas.customer_schemas import LoyaltyTierCreate, LoyaltyTierUpdate
from modules.customers.services.tier_service import TierService
from modules.loyalty.models.point_history_models import PointSource, PointType
from modules.loyalty.services.points_ledger import PointsLedger
from tests.factories import CustomerFactory, LoyaltyTierFactory


@pytest.fixture
def service(db_session, admin_context):
    return TierService(db_session, admin_context)


@pytest.fixture
def ladder(restaurant):
    return {
        "bronze": LoyaltyTierFactory(restaurant=restaurant, name="bronze", level=1, min_points=0),
        "silver": LoyaltyTierFactory(restaurant=restaurant, name="silver", level=2, min_points=500,
                                     point_multiplier=Decimal("1.25")),
        "gold": LoyaltyTierFactory(restaurant=restaurant, name="gold", level=3, min_points=2000,
                                   point_multiplier=Decimal("1.50")),
    }


def earn_then_spend(db, customer, earned, spent=0):
    ledger = PointsLedger(db)
    ledger.record(customer, earned, PointType.EARNED, PointSource.PURCHASE)
    if spent:
        ledger.record(customer, -spent, PointType.SPENT, PointSource.REWARD)
    db.commit()


class TestRecalculateTier:
    def test_assigned_by_lifetime_earned_points(self, service, db_session, restaurant, ladder):
        customer = CustomerFactory(restaurant=restaurant)
        # spending does not demote
        earn_then_spend(db_session, customer, 600, spent=550)

        result = service.recalculate_customer(customer.id)

        assert result.tier_id == ladder["silver"].id
        assert result.level == CustomerLevel.SILVER
        assert result.lifetime_points == 600
        assert result.changed is True
        assert customer.points == 50

    def test_unchanged(self, service, db_session, restaurant, ladder):
        customer = CustomerFactory(restaurant=restaurant)
        service.recalculate_customer(customer.id)

        result = service.recalculate_customer(customer.id)

        assert result.tier_id == ladder["bronze"].id
        assert result.changed is False

    def test_inactive_tier_is_skipped(self, service, db_session, restaurant, ladder):
        service.update_tier(ladder["gold"].id, LoyaltyTierUpdate(is_active=False))
        customer = CustomerFactory(restaurant=restaurant)
        earn_then_spend(db_session, customer, 5000)

        assert service.recalculate_customer(customer.id).tier_id == ladder["silver"].id

    def test_no_tiers_means_regular(self, service, restaurant):
        customer = CustomerFactory(restaurant=restaurant)
        result = service.recalculate_customer(customer.id)
        assert result.tier_id is None
        assert result.level == CustomerLevel.REGULAR


class TestTierCrud:
    def test_create_and_list_in_level_order(self, service, restaurant):
        service.create_tier(LoyaltyTierCreate(name="gold", display_name="Gold", level=3, min_points=2000))
        service.create_tier(LoyaltyTierCreate(name="bronze", display_name="Bronze", level=1))

        assert [tier.name for tier in service.list_tiers()] == ["bronze", "gold"]

    def test_duplicate_name(self, service, restaurant):
        service.create_tier(LoyaltyTierCreate(name="gold", display_name="Gold", level=3))
        with pytest.raises(ConflictError):
            service.create_tier(LoyaltyTierCreate(name="gold", display_name="Gold again", level=4))

    def test_delete_reassigns_members(self, service, db_session, restaurant, ladder):
        customer = CustomerFactory(restaurant=restaurant)
        earn_then_spend(db_session, customer, 2500)
        service.recalculate_customer(customer.id)
        assert customer.tier_id == ladder["gold"].id

        service.delete_tier(ladder["gold"].id)

        db_session.refresh(customer)
        assert customer.tier_id == ladder["silver"].id
        assert customer.level == CustomerLevel.SILVER
        with pytest.raises(NotFoundError):
            service.get_tier(ladder["gold"].id)

    def test_other_restaurant_tier(self, service, other_restaurant):
        foreign = LoyaltyTierFactory(restaurant=other_restaurant)
        with pytest.raises(NotFoundError):
            service.get_tier(foreign.id)


class TestTierUpdateReassigns:
    def test_raised_threshold_demotes(self, service, db_session, restaurant, ladder):
        customer = CustomerFactory(restaurant=restaurant)
        earn_then_spend(db_session, customer, 600)
        service.recalculate_customer(customer.id)
        assert customer.tier_id == ladder["silver"].id

        service.update_tier(ladder["silver"].id, LoyaltyTierUpdate(min_points=700))

        db_session.refresh(customer)
        assert customer.tier_id == ladder["bronze"].id
        assert customer.level == CustomerLevel.BRONZE

    def test_lowered_threshold_promotes(self, service, db_session, restaurant, ladder):
        customer = CustomerFactory(restaurant=restaurant)
        earn_then_spend(db_session, customer, 1500)
        service.recalculate_customer(customer.id)
        assert customer.tier_id == ladder["silver"].id

        service.update_tier(ladder["gold"].id, LoyaltyTierUpdate(min_points=1000))

        db_session.refresh(customer)
        assert customer.tier_id == ladder["gold"].id
        assert customer.level == CustomerLevel.GOLD

    def test_deactivated_tier_releases_members(self, service, db_session, restaurant, ladder):
        customer = CustomerFactory(restaurant=restaurant)
        earn_then_spend(db_session, customer, 2500)
        service.recalculate_customer(customer.id)

        service.update_tier(ladder["gold"].id, LoyaltyTierUpdate(is_active=False))
        db_session.refresh(customer)
        assert customer.tier_id == ladder["silver"].id

        service.update_tier(ladder["gold"].id, LoyaltyTierUpdate(is_active=True))
        db_session.refresh(customer)
        assert customer.tier_id == ladder["gold"].id

    def test_cosmetic_change_keeps_assignment(self, service, db_session, restaurant, ladder):
        customer = CustomerFactory(restaurant=restaurant)
        earn_then_spend(db_session, customer, 600)
        service.recalculate_customer(customer.id)

        updated = service.update_tier(ladder["silver"].id, LoyaltyTierUpdate(display_name="Gümüş"))

        assert updated.display_name == "Gümüş"
        db_session.refresh(customer)
        assert customer.tier_id == ladder["silver"].id

    def test_null_threshold_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            LoyaltyTierUpdate(min_points=None)
        assert exc.value.errors()[0]["loc"] == ("min_points",)
