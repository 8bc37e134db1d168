# backend/modules/transactions/tests/test_transaction_service.py

import re
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from core.error_handling import APIValidationError, ConflictError, NotFoundError
from modules.campaigns.models.campaign_models import CampaignType, CampaignUsage, DiscountType
from modules.customers.models.customer_models import CustomerLevel
from modules.loyalty.models.point_history_models import PointHistory, PointSource, PointType
from modules.loyalty.schemas.point_schemas import PointAdjustment
from modules.loyalty.services.loyalty_service import LoyaltyService
from modules.loyalty.services.points_ledger import PointsLedger
from modules.transactions.models.transaction_models import Transaction
from modules.transactions.schemas.transaction_schemas import (
    TransactionCreate,
    TransactionItemCreate,
)
from modules.transactions.services.transaction_service import TransactionService
from tests.factories import (
    CampaignFactory,
    CustomerFactory,
    LoyaltyTierFactory,
    ProductFactory,
    SegmentFactory,
)


@pytest.fixture
def service(db_session, admin_context):
    return TransactionService(db_session, admin_context)


@pytest.fixture
def customer(restaurant):
    return CustomerFactory(restaurant=restaurant)


@pytest.fixture
def latte(restaurant):
    return ProductFactory(restaurant=restaurant, name="Latte", price=Decimal("25.00"))


def basket(customer, *items, **extra):
    return TransactionCreate(customer_id=customer.id, items=list(items), **extra)


class TestCreateTransaction:
    def test_plain_purchase(self, service, db_session, customer, latte):
        transaction = service.create_transaction(
            basket(customer, TransactionItemCreate(product_id=latte.id, quantity=4))
        )

        assert transaction.total_amount == Decimal("100.00")
        assert transaction.discount_amount == Decimal("0.00")
        assert transaction.final_amount == Decimal("100.00")
        assert transaction.points_earned == 10
        assert re.match(r"^ORD-\d{8}-[0-9A-F]{8}$", transaction.order_number)

        item = transaction.items[0]
        assert item.product_name == "Latte"
        assert item.category == "Coffee"
        assert item.total_price == Decimal("100.00")

        db_session.refresh(customer)
        assert customer.points == 10
        assert customer.visit_count == 1
        assert customer.total_spent == Decimal("100.00")
        assert customer.last_visit == transaction.transaction_date

    def test_ad_hoc_line_without_product(self, service, customer):
        transaction = service.create_transaction(basket(
            customer,
            TransactionItemCreate(product_name="Daily soup", unit_price=Decimal("42.50"), quantity=2),
        ))
        assert transaction.final_amount == Decimal("85.00")
        assert transaction.points_earned == 8

    def test_line_needs_name_and_price(self, service, customer):
        with pytest.raises(APIValidationError) as exc:
            service.create_transaction(basket(customer, TransactionItemCreate(quantity=1)))
        fields = {error["field"] for error in exc.value.errors}
        assert fields == {"items.0.product_name", "items.0.unit_price"}

    def test_unknown_product(self, service, customer):
        with pytest.raises(APIValidationError) as exc:
            service.create_transaction(basket(customer, TransactionItemCreate(product_id=999, quantity=1)))
        assert exc.value.errors[0]["field"] == "items.0.product_id"

    def test_tier_multiplier_applies(self, service, restaurant, latte):
        gold = LoyaltyTierFactory(restaurant=restaurant, name="gold", level=3,
                                  point_multiplier=Decimal("2.00"), min_points=0)
        customer = CustomerFactory(restaurant=restaurant, tier=gold, level=CustomerLevel.GOLD)

        transaction = service.create_transaction(
            basket(customer, TransactionItemCreate(product_id=latte.id, quantity=4))
        )

        assert transaction.points_earned == 20
        assert transaction.tier_id == gold.id

    def test_percentage_campaign(self, service, db_session, restaurant, customer, latte):
        campaign = CampaignFactory(restaurant=restaurant, discount_value=Decimal("10"))

        transaction = service.create_transaction(basket(
            customer,
            TransactionItemCreate(product_id=latte.id, quantity=2),
            campaign_ids=[campaign.id],
        ))

        assert transaction.total_amount == Decimal("50.00")
        assert transaction.discount_amount == Decimal("5.00")
        assert transaction.final_amount == Decimal("45.00")
        assert transaction.points_earned == 4
        assert [(a.campaign_id, a.discount_amount) for a in transaction.applied_campaigns] == [
            (campaign.id, Decimal("5.00"))
        ]
        usage = db_session.query(CampaignUsage).filter_by(campaign_id=campaign.id).one()
        assert usage.transaction_id == transaction.id
        assert usage.customer_id == customer.id

    def test_stacked_discounts_never_exceed_subtotal(self, service, restaurant, customer, latte):
        fixed = CampaignFactory(restaurant=restaurant, discount_type=DiscountType.FIXED_AMOUNT,
                                discount_value=Decimal("40"))
        percent = CampaignFactory(restaurant=restaurant, discount_value=Decimal("50"))

        transaction = service.create_transaction(basket(
            customer,
            TransactionItemCreate(product_id=latte.id, quantity=2),
            campaign_ids=[fixed.id, percent.id],
        ))

        assert transaction.discount_amount == Decimal("50.00")
        assert transaction.final_amount == Decimal("0.00")
        assert transaction.points_earned == 0
        amounts = {a.campaign_id: a.discount_amount for a in transaction.applied_campaigns}
        assert amounts == {fixed.id: Decimal("40.00"), percent.id: Decimal("10.00")}

    def test_free_item_marks_line(self, service, restaurant, customer, latte):
        cookie = ProductFactory(restaurant=restaurant, name="Cookie", price=Decimal("12.00"))
        campaign = CampaignFactory(restaurant=restaurant, type=CampaignType.PRODUCT_BASED,
                                   discount_type=DiscountType.FREE_ITEM, free_products=[cookie.id])

        transaction = service.create_transaction(basket(
            customer,
            TransactionItemCreate(product_id=latte.id, quantity=1),
            TransactionItemCreate(product_id=cookie.id, quantity=1),
            campaign_ids=[campaign.id],
        ))

        assert transaction.final_amount == Decimal("25.00")
        free_line = [item for item in transaction.items if item.product_id == cookie.id][0]
        assert free_line.is_free is True
        assert free_line.discount_amount == Decimal("12.00")

    def test_loyalty_points_campaign_bonus(self, service, db_session, restaurant, customer, latte):
        campaign = CampaignFactory(restaurant=restaurant, type=CampaignType.LOYALTY_POINTS,
                                   discount_type=DiscountType.FIXED_AMOUNT,
                                   discount_value=Decimal("0"), points_multiplier=Decimal("3"))

        transaction = service.create_transaction(basket(
            customer,
            TransactionItemCreate(product_id=latte.id, quantity=4),
            campaign_ids=[campaign.id],
        ))

        # 10 base points plus (3 - 1) x 10 bonus
        assert transaction.points_earned == 30
        assert transaction.applied_campaigns[0].points_earned == 20
        earned = db_session.query(PointHistory).filter_by(
            transaction_id=transaction.id, type=PointType.EARNED
        ).all()
        assert [entry.amount for entry in earned] == [30]

    def test_points_used_are_spent_before_earning(self, service, db_session, admin_context,
                                                  customer, latte):
        LoyaltyService(db_session, admin_context).adjust_points(
            customer.id, PointAdjustment(amount=100, description="Welcome bonus")
        )

        transaction = service.create_transaction(basket(
            customer, TransactionItemCreate(product_id=latte.id, quantity=2), points_used=30
        ))

        entries = (
            db_session.query(PointHistory)
            .filter_by(transaction_id=transaction.id)
            .order_by(PointHistory.id)
            .all()
        )
        assert [(e.type, e.amount, e.balance_after) for e in entries] == [
            (PointType.SPENT, -30, 70),
            (PointType.EARNED, 5, 75),
        ]
        assert all(e.source == PointSource.PURCHASE for e in entries)
        db_session.refresh(customer)
        assert customer.points == 75
        assert PointsLedger(db_session).ledger_sum(customer.id) == 75

    def test_cannot_use_more_points_than_balance(self, service, customer, latte):
        with pytest.raises(APIValidationError) as exc:
            service.create_transaction(basket(
                customer, TransactionItemCreate(product_id=latte.id, quantity=1), points_used=1
            ))
        assert exc.value.errors[0]["field"] == "points_used"

    def test_duplicate_order_number(self, service, customer, latte):
        service.create_transaction(basket(
            customer, TransactionItemCreate(product_id=latte.id, quantity=1), order_number="POS-1"
        ))
        with pytest.raises(ConflictError):
            service.create_transaction(basket(
                customer, TransactionItemCreate(product_id=latte.id, quantity=1), order_number="POS-1"
            ))

    def test_customer_of_other_restaurant(self, service, other_restaurant, latte):
        stranger = CustomerFactory(restaurant=other_restaurant)
        with pytest.raises(NotFoundError):
            service.create_transaction(basket(stranger, TransactionItemCreate(product_id=latte.id, quantity=1)))

    def test_tier_recalculated_after_purchase(self, service, db_session, restaurant, customer, latte):
        silver = LoyaltyTierFactory(restaurant=restaurant, name="silver", level=2, min_points=10)

        service.create_transaction(basket(customer, TransactionItemCreate(product_id=latte.id, quantity=4)))

        db_session.refresh(customer)
        assert customer.tier_id == silver.id
        assert customer.level == CustomerLevel.SILVER


class TestCampaignRejection:
    def test_exhausted_campaign_rolls_back_everything(self, service, db_session, restaurant,
                                                      customer, latte):
        campaign = CampaignFactory(restaurant=restaurant, max_usage_per_customer=1)
        service.create_transaction(basket(
            customer, TransactionItemCreate(product_id=latte.id, quantity=2), campaign_ids=[campaign.id]
        ))
        db_session.refresh(customer)
        points_before = customer.points

        with pytest.raises(APIValidationError) as exc:
            service.create_transaction(basket(
                customer, TransactionItemCreate(product_id=latte.id, quantity=2), campaign_ids=[campaign.id]
            ))

        assert exc.value.errors == [{
            "field": "campaign_ids",
            "message": f"{campaign.name}: Customer usage limit reached",
        }]
        assert db_session.query(Transaction).count() == 1
        assert db_session.query(CampaignUsage).count() == 1
        db_session.refresh(customer)
        assert customer.points == points_before
        assert customer.visit_count == 1

    def test_segment_restricted_campaign(self, service, restaurant, customer, latte):
        segment = SegmentFactory(restaurant=restaurant)
        campaign = CampaignFactory(restaurant=restaurant, segments=[segment])

        with pytest.raises(APIValidationError) as exc:
            service.create_transaction(basket(
                customer, TransactionItemCreate(product_id=latte.id, quantity=1), campaign_ids=[campaign.id]
            ))
        assert "not in a targeted segment" in exc.value.errors[0]["message"]

    def test_minimum_purchase_not_reached(self, service, restaurant, customer, latte):
        campaign = CampaignFactory(restaurant=restaurant, min_purchase=Decimal("100"))
        with pytest.raises(APIValidationError):
            service.create_transaction(basket(
                customer, TransactionItemCreate(product_id=latte.id, quantity=1), campaign_ids=[campaign.id]
            ))

    def test_campaign_listed_twice(self, service, restaurant, customer, latte):
        campaign = CampaignFactory(restaurant=restaurant)
        with pytest.raises(APIValidationError) as exc:
            service.create_transaction(basket(
                customer, TransactionItemCreate(product_id=latte.id, quantity=1),
                campaign_ids=[campaign.id, campaign.id],
            ))
        assert exc.value.errors[0]["field"] == "campaign_ids"

    def test_foreign_campaign(self, service, other_restaurant, customer, latte):
        foreign = CampaignFactory(restaurant=other_restaurant)
        with pytest.raises(APIValidationError):
            service.create_transaction(basket(
                customer, TransactionItemCreate(product_id=latte.id, quantity=1), campaign_ids=[foreign.id]
            ))


class TestPreview:
    def test_preview_matches_create_and_persists_nothing(self, service, db_session, restaurant,
                                                         customer, latte):
        campaign = CampaignFactory(restaurant=restaurant, discount_value=Decimal("20"))
        data = basket(customer, TransactionItemCreate(product_id=latte.id, quantity=3),
                      campaign_ids=[campaign.id])

        preview = service.preview_transaction(data)

        assert preview.subtotal == Decimal("75.00")
        assert preview.discount_amount == Decimal("15.00")
        assert preview.final_amount == Decimal("60.00")
        assert preview.points_earned == 6
        assert preview.balance_after == 6
        assert [d.campaign_id for d in preview.discounts] == [campaign.id]
        assert db_session.query(Transaction).count() == 0
        assert db_session.query(CampaignUsage).count() == 0

        created = service.create_transaction(data)
        assert created.final_amount == preview.final_amount
        assert created.points_earned == preview.points_earned


class TestTransactionDate:
    def test_offset_date_is_stored_as_utc(self, service, db_session, customer, latte):
        transaction = service.create_transaction(basket(
            customer,
            TransactionItemCreate(product_id=latte.id, quantity=1),
            transaction_date="2025-06-15T15:00:00+03:00",
        ))

        assert transaction.transaction_date == datetime(2025, 6, 15, 12, 0)
        assert transaction.order_number.startswith("ORD-20250615-")
        db_session.refresh(customer)
        assert customer.last_visit == datetime(2025, 6, 15, 12, 0)

    def test_repeat_visits_with_offset_dates(self, service, db_session, customer, latte):
        for stamp in ("2025-06-15T15:00:00+03:00", "2025-06-16T09:30:00+03:00", "2025-06-14T10:00:00Z"):
            service.create_transaction(basket(
                customer,
                TransactionItemCreate(product_id=latte.id, quantity=1),
                transaction_date=stamp,
            ))

        db_session.refresh(customer)
        assert customer.visit_count == 3
        # an older backdated visit does not move last_visit back
        assert customer.last_visit == datetime(2025, 6, 16, 6, 30)

    def test_campaign_window_with_utc_designator(self, service, restaurant, customer, latte):
        campaign = CampaignFactory(restaurant=restaurant, discount_value=Decimal("10"))
        now = datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")

        transaction = service.create_transaction(basket(
            customer,
            TransactionItemCreate(product_id=latte.id, quantity=2),
            campaign_ids=[campaign.id],
            transaction_date=now,
        ))

        assert transaction.discount_amount == Decimal("5.00")

    def test_offset_date_after_campaign_end(self, service, restaurant, customer, latte):
        campaign = CampaignFactory(restaurant=restaurant)
        # local time reads before end_date but the UTC instant is after it
        local = (campaign.end_date - timedelta(hours=1)).strftime("%Y-%m-%dT%H:%M:%S") + "-03:00"

        with pytest.raises(APIValidationError) as exc:
            service.create_transaction(basket(
                customer,
                TransactionItemCreate(product_id=latte.id, quantity=1),
                campaign_ids=[campaign.id],
                transaction_date=local,
            ))
        assert exc.value.errors[0]["field"] == "campaign_ids"
        assert "ended" in exc.value.errors[0]["message"]

    def test_preview_accepts_offset_date(self, service, restaurant, customer, latte):
        campaign = CampaignFactory(restaurant=restaurant, discount_value=Decimal("10"))
        now = (datetime.utcnow() + timedelta(hours=3)).strftime("%Y-%m-%dT%H:%M:%S") + "+03:00"

        preview = service.preview_transaction(basket(
            customer,
            TransactionItemCreate(product_id=latte.id, quantity=2),
            campaign_ids=[campaign.id],
            transaction_date=now,
        ))

        assert preview.discount_amount == Decimal("5.00")
