# backend/modules/campaigns/services/stamp_card_service.py

"""
Stamp cards for product-based campaigns.

Every ``buy_quantity`` target products bought inside the campaign window
earn one stamp; redeeming the campaign uses one.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from modules.customers.models.customer_models import Customer
from modules.transactions.models.transaction_models import (
    Transaction,
    TransactionItem,
    TransactionStatus,
)

from ..models.campaign_models import Campaign, CampaignType
from ..schemas.campaign_schemas import StampCard
from .campaign_service import usage_counts


def stamp_progress(
    total_purchased: int,
    buy_quantity: int,
    stamps_used: int,
    max_stamps: Optional[int] = None,
) -> dict:
    stamps_earned = total_purchased // buy_quantity
    capped = max_stamps is not None and stamps_earned >= max_stamps
    if capped:
        stamps_earned = max_stamps
    progress = 0 if capped else total_purchased % buy_quantity
    return {
        "total_purchased": total_purchased,
        "stamps_earned": stamps_earned,
        "stamps_used": stamps_used,
        "stamps_available": max(stamps_earned - stamps_used, 0),
        "progress_to_next": progress,
        "remaining_for_next_stamp": buy_quantity - progress,
        "max_stamps": max_stamps,
        "can_earn_more": not capped,
    }


def customer_stamp_cards(db: Session, customer: Customer, now: datetime) -> List[StampCard]:
    campaigns = (
        db.query(Campaign)
        .filter(
            Campaign.restaurant_id == customer.restaurant_id,
            Campaign.type == CampaignType.PRODUCT_BASED,
            Campaign.is_active.is_(True),
            Campaign.buy_quantity.isnot(None),
            Campaign.start_date <= now,
            Campaign.end_date >= now,
        )
        .order_by(Campaign.end_date, Campaign.id)
        .all()
    )
    if not campaigns:
        return []

    per_customer, _ = usage_counts(db, [c.id for c in campaigns], customer.id)
    cards = []
    for campaign in campaigns:
        targets = campaign.target_products or []
        total_purchased = 0
        if targets:
            total_purchased = (
                db.query(func.coalesce(func.sum(TransactionItem.quantity), 0))
                .join(Transaction, Transaction.id == TransactionItem.transaction_id)
                .filter(
                    Transaction.customer_id == customer.id,
                    Transaction.status == TransactionStatus.COMPLETED,
                    Transaction.transaction_date >= campaign.start_date,
                    Transaction.transaction_date <= campaign.end_date,
                    TransactionItem.product_id.in_(targets),
                )
                .scalar()
            )
        progress = stamp_progress(
            int(total_purchased or 0),
            campaign.buy_quantity,
            per_customer.get(campaign.id, 0),
            campaign.max_usage_per_customer,
        )
        cards.append(
            StampCard(
                campaign_id=campaign.id,
                campaign_name=campaign.name,
                buy_quantity=campaign.buy_quantity,
                end_date=campaign.end_date,
                **progress,
            )
        )
    return cards
