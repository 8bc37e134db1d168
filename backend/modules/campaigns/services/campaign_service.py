# backend/modules/campaigns/services/campaign_service.py

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from core.auth_context import RequestContext
from core.error_handling import APIError, APIValidationError, ConflictError, NotFoundError
from core.pagination import PaginationParams
from modules.customers.models.customer_models import Customer, Segment
from modules.notifications.services.notification_service import NotificationService

from ..models.campaign_models import Campaign, CampaignUsage, DiscountType
from ..schemas.campaign_schemas import CampaignCreate, CampaignResponse, CampaignUpdate
from .eligibility import evaluate_eligibility

logger = logging.getLogger(__name__)


def usage_counts(
    db: Session, campaign_ids: Iterable[int], customer_id: Optional[int] = None
) -> Tuple[Dict[int, int], Dict[int, int]]:
    """(per-customer, total) usage counts keyed by campaign id"""
    campaign_ids = list(campaign_ids)
    if not campaign_ids:
        return {}, {}

    total = dict(
        db.query(CampaignUsage.campaign_id, func.count(CampaignUsage.id))
        .filter(CampaignUsage.campaign_id.in_(campaign_ids))
        .group_by(CampaignUsage.campaign_id)
        .all()
    )
    per_customer: Dict[int, int] = {}
    if customer_id is not None:
        per_customer = dict(
            db.query(CampaignUsage.campaign_id, func.count(CampaignUsage.id))
            .filter(
                CampaignUsage.campaign_id.in_(campaign_ids),
                CampaignUsage.customer_id == customer_id,
            )
            .group_by(CampaignUsage.campaign_id)
            .all()
        )
    return per_customer, total


def available_campaigns(db: Session, customer: Customer, now: datetime) -> List[Campaign]:
    """Campaigns of the customer's restaurant the customer may redeem at ``now``"""
    campaigns = (
        db.query(Campaign)
        .options(selectinload(Campaign.segments))
        .filter(
            Campaign.restaurant_id == customer.restaurant_id,
            Campaign.is_active.is_(True),
            Campaign.start_date <= now,
            Campaign.end_date >= now,
        )
        .order_by(Campaign.end_date, Campaign.id)
        .all()
    )
    per_customer, total = usage_counts(db, [c.id for c in campaigns], customer.id)
    return evaluate_eligibility(
        now,
        [segment.id for segment in customer.segments],
        campaigns,
        per_customer,
        total,
    )


class CampaignService:
    """Campaign management for the admin dashboard"""

    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    def _response(self, campaign: Campaign, usage_count: int) -> CampaignResponse:
        return CampaignResponse.model_validate(campaign).model_copy(
            update={"usage_count": usage_count}
        )

    def list_campaigns(
        self,
        pagination: PaginationParams,
        restaurant_id: Optional[int] = None,
        search: Optional[str] = None,
        campaign_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        query = (
            self.db.query(Campaign)
            .options(selectinload(Campaign.segments))
            .filter(Campaign.restaurant_id == restaurant_id)
        )
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Campaign.name.ilike(pattern), Campaign.description.ilike(pattern)))
        if campaign_type:
            query = query.filter(Campaign.type == campaign_type)
        if status == "active":
            query = query.filter(Campaign.is_active.is_(True))
        elif status == "inactive":
            query = query.filter(Campaign.is_active.is_(False))

        query = query.order_by(Campaign.created_at.desc(), Campaign.id.desc())
        items, total = pagination.paginate_query(query)
        _, counts = usage_counts(self.db, [c.id for c in items])
        return pagination.page_of(
            [self._response(c, counts.get(c.id, 0)) for c in items], total
        )

    def get_campaign(self, campaign_id: int) -> Campaign:
        campaign = self.db.get(Campaign, campaign_id)
        if not campaign or not self.context.can_access_restaurant(campaign.restaurant_id):
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    def get_campaign_response(self, campaign_id: int) -> CampaignResponse:
        campaign = self.get_campaign(campaign_id)
        _, counts = usage_counts(self.db, [campaign.id])
        return self._response(campaign, counts.get(campaign.id, 0))

    def create_campaign(self, data: CampaignCreate) -> CampaignResponse:
        restaurant_id = self.context.resolve_restaurant_id(data.restaurant_id)
        values = data.model_dump(exclude={"restaurant_id", "segment_ids"})
        self._validate_rules(values)
        self._ensure_unique_name(restaurant_id, data.name)

        try:
            campaign = Campaign(restaurant_id=restaurant_id, **self._column_values(values))
            campaign.segments = self._load_segments(restaurant_id, data.segment_ids)
            self.db.add(campaign)
            self.db.flush()

            if campaign.send_notification and campaign.is_active:
                NotificationService(self.db, self.context).notify_campaign(campaign)

            self.db.commit()
        except APIError:
            self.db.rollback()
            raise

        self.db.refresh(campaign)
        logger.info("Created campaign %s (ID: %s)", campaign.name, campaign.id)
        return self._response(campaign, 0)

    def update_campaign(self, campaign_id: int, data: CampaignUpdate) -> CampaignResponse:
        campaign = self.get_campaign(campaign_id)
        changes = data.model_dump(exclude_unset=True)
        segment_ids = changes.pop("segment_ids", None)

        merged = {
            "start_date": campaign.start_date,
            "end_date": campaign.end_date,
            "discount_type": campaign.discount_type,
            "discount_value": campaign.discount_value,
            "free_products": campaign.free_products,
        }
        merged.update(changes)
        self._validate_rules(merged)

        if "name" in changes and changes["name"] != campaign.name:
            self._ensure_unique_name(campaign.restaurant_id, changes["name"])

        for field, value in self._column_values(changes).items():
            setattr(campaign, field, value)
        if segment_ids is not None:
            campaign.segments = self._load_segments(campaign.restaurant_id, segment_ids)

        self.db.commit()
        self.db.refresh(campaign)
        logger.info("Updated campaign %s", campaign.id)
        return self.get_campaign_response(campaign.id)

    def delete_campaign(self, campaign_id: int) -> None:
        """Delete a campaign that has never been used; used ones must be deactivated"""
        campaign = self.get_campaign(campaign_id)
        _, counts = usage_counts(self.db, [campaign.id])
        if counts.get(campaign.id, 0):
            raise ConflictError(
                "Campaign has been used and cannot be deleted; deactivate it instead",
                {"campaign_id": campaign.id, "usage_count": counts[campaign.id]},
            )
        self.db.delete(campaign)
        self.db.commit()
        logger.info("Deleted campaign %s", campaign_id)

    def eligible_for_customer(self, customer_id: int, now: Optional[datetime] = None) -> List[Campaign]:
        customer = self.db.get(Customer, customer_id)
        if not customer or not self.context.can_access_restaurant(customer.restaurant_id):
            raise NotFoundError("Customer", customer_id)
        return available_campaigns(self.db, customer, now or datetime.utcnow())

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------

    @staticmethod
    def _column_values(values: dict) -> dict:
        """Schema values in their column form (ValidHours becomes a dict)"""
        out = dict(values)
        if out.get("valid_hours") is not None and not isinstance(out["valid_hours"], dict):
            out["valid_hours"] = out["valid_hours"].model_dump()
        return out

    def _validate_rules(self, values: dict) -> None:
        errors = []
        start, end = values.get("start_date"), values.get("end_date")
        if start and end and end <= start:
            errors.append({"field": "end_date", "message": "end_date must be after start_date"})

        discount_type = values.get("discount_type")
        value = Decimal(values.get("discount_value") or 0)
        if discount_type == DiscountType.PERCENTAGE and value > 100:
            errors.append({"field": "discount_value", "message": "Percentage discount cannot exceed 100"})
        if discount_type == DiscountType.FREE_ITEM and not values.get("free_products"):
            errors.append({"field": "free_products", "message": "FREE_ITEM campaigns need free_products"})

        if errors:
            raise APIValidationError("Invalid campaign", errors)

    def _ensure_unique_name(self, restaurant_id: int, name: str) -> None:
        exists = (
            self.db.query(Campaign.id)
            .filter(Campaign.restaurant_id == restaurant_id, Campaign.name == name)
            .first()
        )
        if exists:
            raise ConflictError(f"Campaign '{name}' already exists", {"name": name})

    def _load_segments(self, restaurant_id: int, segment_ids: List[int]) -> List[Segment]:
        if not segment_ids:
            return []
        segments = (
            self.db.query(Segment)
            .filter(Segment.id.in_(segment_ids), Segment.restaurant_id == restaurant_id)
            .all()
        )
        missing = sorted(set(segment_ids) - {s.id for s in segments})
        if missing:
            raise APIValidationError.for_field(
                "segment_ids", f"Unknown segments for this restaurant: {missing}"
            )
        return segments
