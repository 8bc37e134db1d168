# backend/modules/campaigns/models/__init__.py

from .campaign_models import (
    Campaign,
    CampaignType,
    CampaignUsage,
    DiscountType,
    campaign_segments,
)

__all__ = [
    "Campaign",
    "CampaignType",
    "CampaignUsage",
    "DiscountType",
    "campaign_segments",
]
