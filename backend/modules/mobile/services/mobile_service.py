# backend/modules/mobile/services/mobile_service.py

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.error_handling import NotFoundError
from modules.campaigns.services.campaign_service import available_campaigns
from modules.campaigns.services.stamp_card_service import customer_stamp_cards
from modules.customers.models.customer_models import Customer, LoyaltyTier
from modules.loyalty.services.points_ledger import PointsLedger
from modules.transactions.models.transaction_models import Transaction

from ..schemas.mobile_schemas import MobileDashboard, NextTier

RECENT_TRANSACTIONS = 5


class MobileService:
    """Customer-facing loyalty card"""

    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    def get_dashboard(self, customer_id: int, now: Optional[datetime] = None) -> MobileDashboard:
        customer = self.db.get(Customer, customer_id)
        if not customer or not self.context.can_access_restaurant(customer.restaurant_id):
            raise NotFoundError("Customer", customer_id)
        now = now or datetime.utcnow()

        lifetime = PointsLedger(self.db).lifetime_earned(customer.id)
        transactions = (
            self.db.query(Transaction)
            .filter(Transaction.customer_id == customer.id)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .limit(RECENT_TRANSACTIONS)
            .all()
        )

        return MobileDashboard(
            customer=customer,
            tier=customer.tier,
            points=customer.points,
            lifetime_points=lifetime,
            next_tier=self._next_tier(customer, lifetime),
            recent_transactions=transactions,
            available_campaigns=available_campaigns(self.db, customer, now),
            stamp_cards=customer_stamp_cards(self.db, customer, now),
        )

    def _next_tier(self, customer: Customer, lifetime: int) -> Optional[NextTier]:
        tier = (
            self.db.query(LoyaltyTier)
            .filter(
                LoyaltyTier.restaurant_id == customer.restaurant_id,
                LoyaltyTier.is_active.is_(True),
                LoyaltyTier.min_points > lifetime,
            )
            .order_by(LoyaltyTier.min_points, LoyaltyTier.level)
            .first()
        )
        if tier is None:
            return None
        return NextTier(
            id=tier.id,
            name=tier.name,
            display_name=tier.display_name,
            min_points=tier.min_points,
            points_needed=tier.min_points - lifetime,
        )
