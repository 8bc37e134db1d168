# backend/modules/customers/services/tier_service.py

"""Loyalty tier configuration and assignment."""

import logging
from typing import List

from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.error_handling import APIError, ConflictError, NotFoundError
from modules.loyalty.services.points_ledger import PointsLedger

from ..models.customer_models import Customer, CustomerLevel, LoyaltyTier
from ..schemas.customer_schemas import (
    LoyaltyTierCreate,
    LoyaltyTierUpdate,
    TierRecalculation,
)

logger = logging.getLogger(__name__)

# Tier fields that decide which customers belong to which tier
ASSIGNMENT_FIELDS = {"min_points", "level", "is_active"}


class TierService:
    """Manage tiers and assign customers to them by lifetime earned points"""

    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    def list_tiers(self, restaurant_id: int = None) -> List[LoyaltyTier]:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        return (
            self.db.query(LoyaltyTier)
            .filter(LoyaltyTier.restaurant_id == restaurant_id)
            .order_by(LoyaltyTier.level, LoyaltyTier.min_points)
            .all()
        )

    def get_tier(self, tier_id: int) -> LoyaltyTier:
        tier = self.db.get(LoyaltyTier, tier_id)
        if not tier or not self.context.can_access_restaurant(tier.restaurant_id):
            raise NotFoundError("LoyaltyTier", tier_id)
        return tier

    def create_tier(self, data: LoyaltyTierCreate) -> LoyaltyTier:
        restaurant_id = self.context.resolve_restaurant_id(data.restaurant_id)
        existing = (
            self.db.query(LoyaltyTier)
            .filter(LoyaltyTier.restaurant_id == restaurant_id, LoyaltyTier.name == data.name)
            .first()
        )
        if existing:
            raise ConflictError(f"Tier '{data.name}' already exists", {"name": data.name})

        tier = LoyaltyTier(restaurant_id=restaurant_id, **data.model_dump(exclude={"restaurant_id"}))
        self.db.add(tier)
        self.db.commit()
        self.db.refresh(tier)
        logger.info("Created loyalty tier %s (ID: %s)", tier.name, tier.id)
        return tier

    def update_tier(self, tier_id: int, data: LoyaltyTierUpdate) -> LoyaltyTier:
        """Update a tier; threshold, ordering or activation changes re-tier the restaurant"""
        tier = self.get_tier(tier_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(tier, field, value)

        moved = 0
        if ASSIGNMENT_FIELDS & changes.keys():
            moved = self._recalculate_restaurant(tier.restaurant_id)
        self.db.commit()
        self.db.refresh(tier)
        logger.info("Updated loyalty tier %s, %d customers changed tier", tier.id, moved)
        return tier

    def delete_tier(self, tier_id: int) -> None:
        """Delete a tier and move its customers to the next tier that fits"""
        tier = self.get_tier(tier_id)
        try:
            members = list(tier.customers)
            for customer in members:
                self.recalculate_tier(customer, exclude_tier_id=tier.id)
            self.db.flush()
            self.db.delete(tier)
            self.db.commit()
        except APIError:
            self.db.rollback()
            raise
        logger.info("Deleted loyalty tier %s, reassigned %d customers", tier_id, len(members))

    def recalculate_tier(self, customer: Customer, exclude_tier_id: int = None) -> TierRecalculation:
        """Assign the highest active tier whose threshold the customer has reached.

        Does not commit; the caller owns the transaction.
        """
        self.db.flush()
        lifetime = PointsLedger(self.db).lifetime_earned(customer.id)

        query = self.db.query(LoyaltyTier).filter(
            LoyaltyTier.restaurant_id == customer.restaurant_id,
            LoyaltyTier.is_active.is_(True),
            LoyaltyTier.min_points <= lifetime,
        )
        if exclude_tier_id is not None:
            query = query.filter(LoyaltyTier.id != exclude_tier_id)
        tier = query.order_by(LoyaltyTier.level.desc(), LoyaltyTier.min_points.desc()).first()

        previous_tier_id = customer.tier_id
        customer.tier = tier
        customer.tier_id = tier.id if tier else None
        customer.level = CustomerLevel.from_ordinal(tier.level) if tier else CustomerLevel.REGULAR

        changed = previous_tier_id != customer.tier_id
        if changed:
            logger.info(
                "Customer %s moved from tier %s to %s (%d lifetime points)",
                customer.id, previous_tier_id, customer.tier_id, lifetime,
            )
        return TierRecalculation(
            customer_id=customer.id,
            previous_tier_id=previous_tier_id,
            tier_id=customer.tier_id,
            level=customer.level,
            lifetime_points=lifetime,
            changed=changed,
        )

    def recalculate_customer(self, customer_id: int) -> TierRecalculation:
        customer = self.db.get(Customer, customer_id)
        if not customer or not self.context.can_access_restaurant(customer.restaurant_id):
            raise NotFoundError("Customer", customer_id)
        result = self.recalculate_tier(customer)
        self.db.commit()
        return result

    def _recalculate_restaurant(self, restaurant_id: int) -> int:
        customers = self.db.query(Customer).filter(Customer.restaurant_id == restaurant_id).all()
        return sum(1 for customer in customers if self.recalculate_tier(customer).changed)
