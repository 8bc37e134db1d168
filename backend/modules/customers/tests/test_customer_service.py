# backend/modules/customers/tests/test_customer_service.py

from datetime import datetime
from decimal import Decimal

import pytest

from core.error_handling import ConflictError, NotFoundError
from core.pagination import PaginationParams
from modules.customers.models.customer_models import Customer, CustomerLevel
from modules.customers.schemas.customer_schemas import (
    CustomerCreate,
    CustomerFilters,
    CustomerUpdate,
)
from modules.customers.services.customer_service import CustomerService
from modules.loyalty.models.point_history_models import PointHistory
from modules.loyalty.schemas.point_schemas import PointAdjustment
from modules.loyalty.services.loyalty_service import LoyaltyService
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
    return CustomerService(db_session, admin_context)


def buy(db, context, customer, product, quantity):
    return TransactionService(db, context).create_transaction(
        TransactionCreate(
            customer_id=customer.id,
            items=[TransactionItemCreate(product_id=product.id, quantity=quantity)],
        )
    )


class TestCreateCustomer:
    def test_new_customer_starts_in_entry_tier(self, service, restaurant):
        entry = LoyaltyTierFactory(restaurant=restaurant, name="bronze", level=1, min_points=0)

        customer = service.create_customer(CustomerCreate(name="Elif Yılmaz", email="elif@example.com"))

        assert customer.restaurant_id == restaurant.id
        assert customer.points == 0
        assert customer.tier_id == entry.id
        assert customer.level == CustomerLevel.BRONZE
        assert customer.visit_count == 0

    def test_duplicate_email(self, service):
        service.create_customer(CustomerCreate(name="Elif", email="elif@example.com"))
        with pytest.raises(ConflictError):
            service.create_customer(CustomerCreate(name="Another Elif", email="elif@example.com"))

    def test_update_profile(self, service, restaurant):
        customer = CustomerFactory(restaurant=restaurant)
        updated = service.update_customer(customer.id, CustomerUpdate(phone="+905551112233"))
        assert updated.phone == "+905551112233"

    def test_balance_is_not_editable(self):
        with pytest.raises(ValueError):
            CustomerUpdate(points=1000)


class TestListCustomers:
    def test_search_and_filters(self, service, restaurant, other_restaurant):
        ayse = CustomerFactory(restaurant=restaurant, name="Ayşe Demir")
        gold = CustomerFactory(restaurant=restaurant, name="Can Kaya", level=CustomerLevel.GOLD)
        CustomerFactory(restaurant=other_restaurant, name="Ayşe Başka")
        segment = SegmentFactory(restaurant=restaurant, customers=[gold])
        pagination = PaginationParams(page=1, limit=10)

        assert service.list_customers(CustomerFilters(), pagination)["pagination"].total == 2
        by_name = service.list_customers(CustomerFilters(search="Ayşe"), pagination)
        assert [c.id for c in by_name["items"]] == [ayse.id]
        by_level = service.list_customers(CustomerFilters(level=CustomerLevel.GOLD), pagination)
        assert [c.id for c in by_level["items"]] == [gold.id]
        by_segment = service.list_customers(CustomerFilters(segment_id=segment.id), pagination)
        assert [c.id for c in by_segment["items"]] == [gold.id]

    def test_other_restaurant_customer_is_hidden(self, service, other_restaurant):
        stranger = CustomerFactory(restaurant=other_restaurant)
        with pytest.raises(NotFoundError):
            service.get_customer(stranger.id)


class TestCustomerDetail:
    def test_detail_view(self, service, db_session, admin_context, restaurant):
        customer = CustomerFactory(restaurant=restaurant)
        latte = ProductFactory(restaurant=restaurant)
        SegmentFactory(restaurant=restaurant, name="Coffee lovers", customers=[customer])
        campaign = CampaignFactory(restaurant=restaurant)
        buy(db_session, admin_context, customer, latte, 4)
        buy(db_session, admin_context, customer, latte, 2)

        detail = service.get_customer_detail(customer.id, now=datetime.utcnow())

        assert detail.customer.id == customer.id
        assert len(detail.recent_transactions) == 2
        assert [entry.amount for entry in detail.point_history] == [5, 10]
        assert detail.segments == ["Coffee lovers"]
        assert [c.id for c in detail.available_campaigns] == [campaign.id]
        assert detail.stats.total_spent == Decimal("150.00")
        assert detail.stats.total_visits == 2
        assert detail.stats.average_spent == Decimal("75.00")
        assert detail.stats.current_points == 15
        assert detail.stats.total_points_earned == 15
        assert detail.stats.total_points_spent == 0


class TestDeleteCustomer:
    def test_delete_removes_history(self, service, db_session, admin_context, restaurant):
        customer = CustomerFactory(restaurant=restaurant)
        latte = ProductFactory(restaurant=restaurant)
        buy(db_session, admin_context, customer, latte, 2)
        LoyaltyService(db_session, admin_context).adjust_points(
            customer.id, PointAdjustment(amount=10, description="Goodwill")
        )
        customer_id = customer.id

        service.delete_customer(customer_id)
        db_session.expire_all()

        assert db_session.get(Customer, customer_id) is None
        assert db_session.query(Transaction).filter_by(customer_id=customer_id).count() == 0
        assert db_session.query(PointHistory).filter_by(customer_id=customer_id).count() == 0
