# backend/modules/campaigns/services/eligibility.py

"""
Campaign eligibility rules.

Pure functions over already-loaded data: nothing here touches the
database. A campaign is eligible for a customer at ``now`` when it is
active, ``now`` lies inside its validity window, the customer is in one of
its restricted segments (if it has any), and neither the per-customer nor
the global usage cap is exhausted. A cap of ``None`` means unlimited.
"""

from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Sequence

from core.datetime_utils import to_naive_utc

from ..models.campaign_models import Campaign


def restricted_segment_ids(campaign: Campaign) -> List[int]:
    return [segment.id for segment in campaign.segments]


def ineligibility_reason(
    campaign: Campaign,
    now: datetime,
    customer_segment_ids: Iterable[int],
    customer_usage: int = 0,
    total_usage: int = 0,
) -> Optional[str]:
    """Why the campaign is not redeemable, or None when it is"""
    if not campaign.is_active:
        return "Campaign is not active"
    now = to_naive_utc(now)
    if now < to_naive_utc(campaign.start_date):
        return "Campaign has not started yet"
    if now > to_naive_utc(campaign.end_date):
        return "Campaign has ended"

    segment_ids = restricted_segment_ids(campaign)
    if segment_ids and not set(segment_ids) & set(customer_segment_ids):
        return "Customer is not in a targeted segment"

    if campaign.max_usage_per_customer is not None and customer_usage >= campaign.max_usage_per_customer:
        return "Customer usage limit reached"
    if campaign.max_usage is not None and total_usage >= campaign.max_usage:
        return "Campaign usage limit reached"
    return None


def is_eligible(
    campaign: Campaign,
    now: datetime,
    customer_segment_ids: Iterable[int],
    customer_usage: int = 0,
    total_usage: int = 0,
) -> bool:
    return ineligibility_reason(
        campaign, now, customer_segment_ids, customer_usage, total_usage
    ) is None


def evaluate_eligibility(
    now: datetime,
    customer_segment_ids: Iterable[int],
    campaigns: Sequence[Campaign],
    customer_usage: Mapping[int, int],
    total_usage: Mapping[int, int],
) -> List[Campaign]:
    """Eligible campaigns in input order.

    Overlapping campaigns are all returned; choosing among them is up to
    the caller.
    """
    segment_ids = set(customer_segment_ids)
    return [
        campaign
        for campaign in campaigns
        if is_eligible(
            campaign,
            now,
            segment_ids,
            customer_usage.get(campaign.id, 0),
            total_usage.get(campaign.id, 0),
        )
    ]
