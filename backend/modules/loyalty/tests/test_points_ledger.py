# backend/modules/loyalty/tests/test_points_ledger.py

from datetime import datetime, timedelta

import pytest

from core.error_handling import APIValidationError, NotFoundError
from core.pagination import PaginationParams
from modules.loyalty.models.point_history_models import (
    ImmutableLedgerError,
    PointHistory,
    PointSource,
    PointType,
)
from modules.loyalty.schemas.point_schemas import ExpirePointsRequest, PointAdjustment
from modules.loyalty.services.loyalty_service import LoyaltyService
from modules.loyalty.services.points_ledger import PointsLedger
from tests.factories import CustomerFactory, LoyaltyTierFactory


@pytest.fixture
def service(db_session, admin_context):
    return LoyaltyService(db_session, admin_context)


@pytest.fixture
def customer(restaurant):
    return CustomerFactory(restaurant=restaurant)


def grant(service, customer, amount, description="Opening balance"):
    return service.adjust_points(customer.id, PointAdjustment(amount=amount, description=description))


class TestLedger:
    def test_record_keeps_running_balance(self, db_session, customer):
        ledger = PointsLedger(db_session)
        ledger.record(customer, 40, PointType.EARNED, PointSource.BONUS, "Welcome")
        entry = ledger.record(customer, -15, PointType.SPENT, PointSource.REWARD, "Free cookie")
        db_session.commit()

        assert entry.balance_after == 25
        assert customer.points == 25
        assert ledger.ledger_sum(customer.id) == 25
        assert ledger.lifetime_earned(customer.id) == 40

    def test_sign_must_match_type(self, db_session, customer):
        ledger = PointsLedger(db_session)
        with pytest.raises(ValueError):
            ledger.record(customer, -5, PointType.EARNED, PointSource.MANUAL)
        with pytest.raises(ValueError):
            ledger.record(customer, 5, PointType.SPENT, PointSource.MANUAL)

    def test_balance_cannot_go_negative(self, db_session, customer):
        with pytest.raises(APIValidationError) as exc:
            PointsLedger(db_session).record(customer, -1, PointType.SPENT, PointSource.MANUAL)
        assert exc.value.errors[0]["field"] == "points"
        assert customer.points == 0

    def test_entries_cannot_be_updated(self, db_session, service, customer):
        entry = grant(service, customer, 10)
        entry.amount = 1000
        with pytest.raises(ImmutableLedgerError):
            db_session.flush()
        db_session.rollback()

    def test_entries_cannot_be_deleted(self, db_session, service, customer):
        entry = grant(service, customer, 10)
        db_session.delete(entry)
        with pytest.raises(ImmutableLedgerError):
            db_session.flush()
        db_session.rollback()


class TestAdjustPoints:
    def test_grant_and_deduct(self, service, db_session, customer):
        grant(service, customer, 50)
        entry = service.adjust_points(customer.id, PointAdjustment(amount=-20, description="Correction"))

        assert entry.type == PointType.SPENT
        assert entry.source == PointSource.MANUAL
        assert entry.balance_after == 30
        db_session.refresh(customer)
        assert customer.points == 30

    def test_overdraw_is_rejected(self, service, db_session, customer):
        grant(service, customer, 5)
        with pytest.raises(APIValidationError):
            service.adjust_points(customer.id, PointAdjustment(amount=-6, description="Too much"))
        db_session.refresh(customer)
        assert customer.points == 5
        assert db_session.query(PointHistory).filter_by(customer_id=customer.id).count() == 1

    def test_grant_can_promote_tier(self, service, db_session, restaurant, customer):
        bronze = LoyaltyTierFactory(restaurant=restaurant, name="bronze", level=1, min_points=100)
        grant(service, customer, 120)
        db_session.refresh(customer)
        assert customer.tier_id == bronze.id

    def test_only_manual_sources(self):
        with pytest.raises(ValueError):
            PointAdjustment(amount=5, description="Purchase", source=PointSource.PURCHASE)
        with pytest.raises(ValueError):
            PointAdjustment(amount=0, description="Nothing")

    def test_other_restaurant_customer(self, service, other_restaurant):
        stranger = CustomerFactory(restaurant=other_restaurant)
        with pytest.raises(NotFoundError):
            grant(service, stranger, 10)


class TestExpiry:
    def test_expires_only_inactive_balances(self, service, db_session, restaurant):
        now = datetime(2025, 6, 15, 12, 0)
        dormant = CustomerFactory(restaurant=restaurant, last_visit=now - timedelta(days=400))
        regular = CustomerFactory(restaurant=restaurant, last_visit=now - timedelta(days=3))
        never_visited = CustomerFactory(restaurant=restaurant)
        for customer, amount in ((dormant, 70), (regular, 40), (never_visited, 5)):
            grant(service, customer, amount)

        result = service.expire_inactive_points(ExpirePointsRequest(inactive_days=365), now)

        assert result.customers_affected == 2
        assert result.points_expired == 75
        for customer in (dormant, regular, never_visited):
            db_session.refresh(customer)
        assert (dormant.points, regular.points, never_visited.points) == (0, 40, 0)

        expired = db_session.query(PointHistory).filter_by(
            customer_id=dormant.id, type=PointType.EXPIRED
        ).one()
        assert expired.amount == -70
        assert expired.balance_after == 0

    def test_nothing_to_expire(self, service):
        result = service.expire_inactive_points(ExpirePointsRequest(), datetime.utcnow())
        assert result.customers_affected == 0
        assert result.points_expired == 0


class TestReporting:
    def test_stats_net_balance(self, service, restaurant, customer):
        other = CustomerFactory(restaurant=restaurant)
        grant(service, customer, 100)
        grant(service, other, 30)
        service.adjust_points(customer.id, PointAdjustment(amount=-25, description="Refund"))

        stats = service.get_stats()

        assert stats.total_earned == 130
        assert stats.total_spent == 25
        assert stats.total_expired == 0
        assert stats.net_balance == 105

        own = service.get_stats(customer_id=customer.id)
        assert own.net_balance == 75

    def test_stats_ignore_other_restaurants(self, db_session, admin_context, other_restaurant):
        stranger = CustomerFactory(restaurant=other_restaurant)
        PointsLedger(db_session).record(stranger, 50, PointType.EARNED, PointSource.BONUS)
        db_session.commit()

        assert LoyaltyService(db_session, admin_context).get_stats().total_earned == 0

    def test_audit_is_consistent(self, service, customer):
        grant(service, customer, 60)
        service.adjust_points(customer.id, PointAdjustment(amount=-10, description="Correction"))

        audit = service.verify_customer_balance(customer.id)

        assert audit.balance == 50
        assert audit.ledger_sum == 50
        assert audit.consistent is True

    def test_history_newest_first(self, service, customer):
        grant(service, customer, 10, "First")
        grant(service, customer, 20, "Second")

        page = service.customer_history(customer.id, PaginationParams(page=1, limit=10))

        assert [entry.description for entry in page["items"]] == ["Second", "First"]
        assert page["pagination"].total == 2

    def test_restaurant_history_includes_customer_name(self, service, customer):
        grant(service, customer, 10)
        page = service.list_history(PaginationParams(page=1, limit=10))
        assert page["items"][0]["customer_name"] == customer.name
