# backend/modules/mobile/schemas/mobile_schemas.py

from typing import List, Optional

from pydantic import BaseModel

from modules.campaigns.schemas.campaign_schemas import CampaignSummary, StampCard
from modules.customers.schemas.customer_schemas import CustomerResponse, LoyaltyTierResponse
from modules.transactions.schemas.transaction_schemas import TransactionSummary


class NextTier(BaseModel):
    id: int
    name: str
    display_name: str
    min_points: int
    points_needed: int


class MobileDashboard(BaseModel):
    """Everything the loyalty card screen shows"""
    customer: CustomerResponse
    tier: Optional[LoyaltyTierResponse] = None
    points: int
    lifetime_points: int
    next_tier: Optional[NextTier] = None
    recent_transactions: List[TransactionSummary] = []
    available_campaigns: List[CampaignSummary] = []
    stamp_cards: List[StampCard] = []
