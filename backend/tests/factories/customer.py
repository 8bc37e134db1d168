# backend/tests/factories/customer.py

from decimal import Decimal

import factory
from factory import Faker, LazyAttribute, Sequence, SubFactory

from modules.customers.models.customer_models import (
    Customer,
    CustomerLevel,
    LoyaltyTier,
    Segment,
)

from .base import BaseFactory, TestSession
from .restaurant import RestaurantFactory


class LoyaltyTierFactory(BaseFactory):
    class Meta:
        model = LoyaltyTier

    restaurant = SubFactory(RestaurantFactory)
    name = Sequence(lambda n: f"tier-{n}")
    display_name = LazyAttribute(lambda obj: obj.name.title())
    level = 1
    point_multiplier = Decimal("1.00")
    discount_percent = Decimal("0")
    min_points = 0
    is_active = True


class CustomerFactory(BaseFactory):
    """Customer with an empty balance; points move through the ledger only"""

    class Meta:
        model = Customer

    restaurant = SubFactory(RestaurantFactory)
    name = Faker("name")
    email = Sequence(lambda n: f"customer{n}@example.com")
    phone = Sequence(lambda n: f"+90532{n:07d}")
    points = 0
    level = CustomerLevel.REGULAR
    total_spent = Decimal("0.00")
    visit_count = 0


class SegmentFactory(BaseFactory):
    class Meta:
        model = Segment

    restaurant = SubFactory(RestaurantFactory)
    name = Sequence(lambda n: f"Segment {n}")
    description = "Segment for testing"
    is_automatic = False
    criteria = None
    member_count = 0

    @factory.post_generation
    def customers(self, create, extracted, **kwargs):
        if not create or not extracted:
            return
        for customer in extracted:
            self.customers.append(customer)
        self.member_count = len(self.customers)
        TestSession.commit()
