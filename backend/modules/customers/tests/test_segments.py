# backend/modules/customers/tests/test_segments.py

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from core.error_handling import APIValidationError, ConflictError
from modules.customers.schemas.segment_schemas import (
    CriteriaPeriod,
    SegmentCreate,
    SegmentCriteria,
    SegmentUpdate,
)
from modules.customers.services.segment_service import (
    CustomerActivity,
    SegmentService,
    matches_criteria,
)
from modules.transactions.models.transaction_models import Transaction, TransactionStatus
from tests.factories import CustomerFactory, SegmentFactory

NOW = datetime(2025, 6, 15, 12, 0)


def purchases(db, customer, count, amount="50.00", days_ago=1, status=TransactionStatus.COMPLETED):
    for n in range(count):
        db.add(Transaction(
            restaurant_id=customer.restaurant_id,
            customer_id=customer.id,
            order_number=f"SEED-{customer.id}-{days_ago}-{n}-{status.value}",
            status=status,
            total_amount=Decimal(amount),
            final_amount=Decimal(amount),
            transaction_date=NOW - timedelta(days=days_ago),
        ))
    db.commit()


@pytest.fixture
def service(db_session, admin_context):
    return SegmentService(db_session, admin_context)


class TestSegmentCriteria:
    def test_legacy_form_is_normalized(self):
        criteria = SegmentCriteria.model_validate(
            {"purchaseCount": {"min": 20}, "period": "last_90_days"}
        )
        assert criteria.period == CriteriaPeriod.LAST_90_DAYS
        assert len(criteria.predicates) == 1
        assert criteria.predicates[0].kind == "purchase_count"
        assert criteria.predicates[0].min == 20

    def test_typed_form(self):
        criteria = SegmentCriteria.model_validate({
            "period": "all_time",
            "predicates": [
                {"kind": "total_spent", "min": "1000"},
                {"kind": "days_since_last_purchase", "max": 30},
            ],
        })
        assert [p.kind for p in criteria.predicates] == ["total_spent", "days_since_last_purchase"]

    def test_unknown_key_is_rejected(self):
        with pytest.raises(ValueError):
            SegmentCriteria.model_validate({"favouriteColour": {"min": 1}})

    def test_predicate_needs_a_bound(self):
        with pytest.raises(ValueError):
            SegmentCriteria.model_validate({"predicates": [{"kind": "visit_count"}]})

    def test_min_not_above_max(self):
        with pytest.raises(ValueError):
            SegmentCriteria.model_validate({"totalSpent": {"min": 500, "max": 100}})


class TestMatchesCriteria:
    criteria = SegmentCriteria.model_validate({"purchaseCount": {"min": 20}, "period": "last_90_days"})

    def test_threshold_is_inclusive(self):
        assert matches_criteria(self.criteria, CustomerActivity(purchase_count=20), NOW)
        assert not matches_criteria(self.criteria, CustomerActivity(purchase_count=19), NOW)

    def test_average_order_value(self):
        criteria = SegmentCriteria.model_validate({"averageOrderValue": {"min": "100"}})
        big_spender = CustomerActivity(purchase_count=2, total_spent=Decimal("250.00"))
        assert big_spender.average_order_value == Decimal("125.00")
        assert matches_criteria(criteria, big_spender, NOW)
        assert not matches_criteria(criteria, CustomerActivity(), NOW)

    def test_days_since_without_purchases(self):
        criteria = SegmentCriteria.model_validate({"daysSinceLastPurchase": {"min": 30}})
        assert not matches_criteria(criteria, CustomerActivity(), NOW)
        lapsed = CustomerActivity(purchase_count=1, last_purchase_at=NOW - timedelta(days=45))
        assert matches_criteria(criteria, lapsed, NOW)

    def test_all_predicates_must_hold(self):
        criteria = SegmentCriteria.model_validate(
            {"purchaseCount": {"min": 2}, "visitCount": {"max": 5}}
        )
        assert matches_criteria(criteria, CustomerActivity(purchase_count=3, visit_count=5), NOW)
        assert not matches_criteria(criteria, CustomerActivity(purchase_count=3, visit_count=6), NOW)


class TestAutomaticSegments:
    def test_frequent_buyers(self, service, db_session, restaurant):
        loyal = CustomerFactory(restaurant=restaurant, name="Loyal")
        almost = CustomerFactory(restaurant=restaurant, name="Almost")
        purchases(db_session, loyal, 20)
        purchases(db_session, almost, 19)

        segment = service.create_segment(
            SegmentCreate(
                name="Frequent buyers",
                is_automatic=True,
                criteria={"purchaseCount": {"min": 20}, "period": "last_90_days"},
            ),
            now=NOW,
        )

        assert [c.id for c in service.get_members(segment.id)] == [loyal.id]
        assert segment.member_count == 1
        assert segment.last_refreshed_at == NOW

    def test_period_excludes_old_and_cancelled_purchases(self, service, db_session, restaurant):
        customer = CustomerFactory(restaurant=restaurant)
        purchases(db_session, customer, 3, days_ago=10)
        purchases(db_session, customer, 5, days_ago=200)
        purchases(db_session, customer, 5, days_ago=2, status=TransactionStatus.CANCELLED)

        activity = service.customer_activity(
            restaurant.id, SegmentCriteria.model_validate({"purchaseCount": {"min": 1}, "period": "last_30_days"}), NOW
        )

        assert activity[customer.id].purchase_count == 3
        assert activity[customer.id].total_spent == Decimal("150.00")

    def test_refresh_reports_changes(self, service, db_session, restaurant):
        first = CustomerFactory(restaurant=restaurant)
        second = CustomerFactory(restaurant=restaurant)
        purchases(db_session, first, 2)
        segment = service.create_segment(
            SegmentCreate(name="Returning", is_automatic=True, criteria={"purchaseCount": {"min": 2}}),
            now=NOW,
        )

        purchases(db_session, second, 2, days_ago=0)
        result = service.refresh_segment(segment.id, now=NOW)

        assert (result.member_count, result.added, result.removed) == (2, 1, 0)

    def test_needs_predicates(self, service):
        with pytest.raises(APIValidationError) as exc:
            service.create_segment(SegmentCreate(name="Everyone", is_automatic=True))
        assert exc.value.errors[0]["field"] == "criteria"

    def test_members_are_not_edited_by_hand(self, service, restaurant):
        customer = CustomerFactory(restaurant=restaurant)
        segment = SegmentFactory(
            restaurant=restaurant, is_automatic=True, criteria={"purchaseCount": {"min": 1}}
        )
        with pytest.raises(APIValidationError) as exc:
            service.add_members(segment.id, [customer.id])
        assert exc.value.errors[0]["field"] == "segment_id"

    def test_switching_to_manual_drops_criteria(self, service, db_session, restaurant):
        segment = service.create_segment(
            SegmentCreate(name="Big spenders", is_automatic=True, criteria={"totalSpent": {"min": 500}}),
            now=NOW,
        )
        updated = service.update_segment(segment.id, SegmentUpdate(is_automatic=False))
        assert updated.criteria is None


class TestManualSegments:
    def test_add_and_remove_members(self, service, restaurant):
        ayse = CustomerFactory(restaurant=restaurant, name="Ayşe")
        burak = CustomerFactory(restaurant=restaurant, name="Burak")
        segment = service.create_segment(SegmentCreate(name="Regulars"))

        service.add_members(segment.id, [burak.id, ayse.id])
        service.add_members(segment.id, [ayse.id])
        assert [c.name for c in service.get_members(segment.id)] == ["Ayşe", "Burak"]
        assert service.get_segment(segment.id).member_count == 2

        service.remove_members(segment.id, [ayse.id])
        assert [c.id for c in service.get_members(segment.id)] == [burak.id]

    def test_criteria_not_allowed(self, service):
        with pytest.raises(APIValidationError) as exc:
            service.create_segment(
                SegmentCreate(name="Manual", criteria={"visitCount": {"min": 1}})
            )
        assert exc.value.errors[0]["field"] == "criteria"

    def test_unknown_customers(self, service, other_restaurant):
        stranger = CustomerFactory(restaurant=other_restaurant)
        segment = service.create_segment(SegmentCreate(name="Regulars"))
        with pytest.raises(APIValidationError) as exc:
            service.add_members(segment.id, [stranger.id])
        assert exc.value.errors[0]["field"] == "customer_ids"

    def test_duplicate_name(self, service):
        service.create_segment(SegmentCreate(name="Regulars"))
        with pytest.raises(ConflictError):
            service.create_segment(SegmentCreate(name="Regulars"))
