# backend/modules/customers/models/__init__.py

from .customer_models import (
    LEVEL_ORDER,
    Customer,
    CustomerLevel,
    LoyaltyTier,
    Segment,
    customer_segments,
)

__all__ = [
    "LEVEL_ORDER",
    "Customer",
    "CustomerLevel",
    "LoyaltyTier",
    "Segment",
    "customer_segments",
]
