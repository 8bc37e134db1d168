# backend/tests/factories/__init__.py

"""
Shared test factories for the AirCRM backend.

These factories provide reusable test data generation for all modules.
"""

from .base import BaseFactory, TestSession
from .campaign import CampaignFactory, ProductFactory
from .customer import CustomerFactory, LoyaltyTierFactory, SegmentFactory
from .restaurant import DEFAULT_PASSWORD, AdminUserFactory, RestaurantFactory

__all__ = [
    # Base
    'BaseFactory',
    'TestSession',

    # Restaurants and users
    'RestaurantFactory',
    'AdminUserFactory',
    'DEFAULT_PASSWORD',

    # Customers
    'CustomerFactory',
    'LoyaltyTierFactory',
    'SegmentFactory',

    # Campaigns
    'CampaignFactory',
    'ProductFactory',
]
