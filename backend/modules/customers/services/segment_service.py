# backend/modules/customers/services/segment_service.py

"""Service layer for customer segmentation.

Manual segments hold an explicit member list. Automatic segments store a
validated :class:`SegmentCriteria` and have their membership recomputed
when refreshed; between refreshes membership may be stale.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.error_handling import APIError, APIValidationError, ConflictError, NotFoundError
from modules.transactions.models.transaction_models import Transaction, TransactionStatus

from ..models.customer_models import Customer, Segment
from ..schemas.segment_schemas import (
    SegmentCreate,
    SegmentCriteria,
    SegmentRefreshResult,
    SegmentUpdate,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class CustomerActivity:
    """Purchase aggregates of one customer over a criteria period"""
    purchase_count: int = 0
    total_spent: Decimal = ZERO
    last_purchase_at: Optional[datetime] = None
    visit_count: int = 0

    @property
    def average_order_value(self) -> Decimal:
        if not self.purchase_count:
            return ZERO
        return (self.total_spent / self.purchase_count).quantize(Decimal("0.01"))


def matches_criteria(criteria: SegmentCriteria, activity: CustomerActivity, now: datetime) -> bool:
    """Conjunction of all predicates"""
    for predicate in criteria.predicates:
        if predicate.kind == "purchase_count":
            value = activity.purchase_count
        elif predicate.kind == "average_order_value":
            value = activity.average_order_value
        elif predicate.kind == "total_spent":
            value = activity.total_spent
        elif predicate.kind == "visit_count":
            value = activity.visit_count
        elif predicate.kind == "days_since_last_purchase":
            if activity.last_purchase_at is None:
                return False
            value = (now - activity.last_purchase_at).days
        else:
            return False
        if not predicate.holds(value):
            return False
    return True


class SegmentService:
    """Encapsulates customer segmentation logic."""

    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def list_segments(self, restaurant_id: Optional[int] = None) -> List[Segment]:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        return (
            self.db.query(Segment)
            .filter(Segment.restaurant_id == restaurant_id)
            .order_by(Segment.name)
            .all()
        )

    def get_segment(self, segment_id: int) -> Segment:
        segment = self.db.get(Segment, segment_id)
        if not segment or not self.context.can_access_restaurant(segment.restaurant_id):
            raise NotFoundError("Segment", segment_id)
        return segment

    def create_segment(self, data: SegmentCreate, now: Optional[datetime] = None) -> Segment:
        restaurant_id = self.context.resolve_restaurant_id(data.restaurant_id)
        self._check_criteria(data.is_automatic, data.criteria)
        self._ensure_unique_name(restaurant_id, data.name)

        segment = Segment(
            restaurant_id=restaurant_id,
            name=data.name,
            description=data.description,
            is_automatic=data.is_automatic,
            criteria=data.criteria.model_dump(mode="json") if data.is_automatic else None,
        )
        self.db.add(segment)
        self.db.commit()
        self.db.refresh(segment)
        logger.info("Created segment %s (ID: %s)", segment.name, segment.id)

        # Evaluate membership immediately so that member_count is accurate.
        self.refresh_segment(segment.id, now=now)
        return segment

    def update_segment(self, segment_id: int, data: SegmentUpdate, now: Optional[datetime] = None) -> Segment:
        segment = self.get_segment(segment_id)
        changes = data.model_dump(exclude_unset=True)

        is_automatic = changes.get("is_automatic", segment.is_automatic)
        if "criteria" in changes:
            criteria = data.criteria
        elif segment.criteria and is_automatic:
            criteria = SegmentCriteria.model_validate(segment.criteria)
        else:
            criteria = None
        self._check_criteria(is_automatic, criteria)

        if "name" in changes and changes["name"] != segment.name:
            self._ensure_unique_name(segment.restaurant_id, changes["name"])

        for field in ("name", "description", "is_automatic"):
            if field in changes:
                setattr(segment, field, changes[field])
        segment.criteria = criteria.model_dump(mode="json") if is_automatic else None

        self.db.commit()
        self.db.refresh(segment)
        logger.info("Updated segment %s", segment.id)

        if segment.is_automatic:
            self.refresh_segment(segment.id, now=now)
        return segment

    def delete_segment(self, segment_id: int) -> None:
        segment = self.get_segment(segment_id)
        self.db.delete(segment)
        self.db.commit()
        logger.info("Deleted segment %s", segment_id)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def refresh_segment(self, segment_id: int, now: Optional[datetime] = None) -> SegmentRefreshResult:
        """Re-calculate membership of an automatic segment.

        For manual segments this only refreshes the member count.
        """
        segment = self.get_segment(segment_id)
        now = now or datetime.utcnow()
        previous = {customer.id for customer in segment.customers}

        try:
            if segment.is_automatic:
                criteria = SegmentCriteria.model_validate(segment.criteria or {})
                members = self._matching_customers(segment.restaurant_id, criteria, now)
                segment.customers = members
                current = {customer.id for customer in members}
            else:
                current = previous

            segment.member_count = len(current)
            segment.last_refreshed_at = now
            self.db.commit()
        except APIError:
            self.db.rollback()
            raise

        result = SegmentRefreshResult(
            segment_id=segment.id,
            member_count=segment.member_count,
            added=len(current - previous),
            removed=len(previous - current),
            refreshed_at=now,
        )
        logger.info(
            "Refreshed segment %s: %d members (+%d/-%d)",
            segment.id, result.member_count, result.added, result.removed,
        )
        return result

    def get_members(self, segment_id: int) -> List[Customer]:
        segment = self.get_segment(segment_id)
        return sorted(segment.customers, key=lambda customer: customer.name)

    def add_members(self, segment_id: int, customer_ids: Sequence[int]) -> Segment:
        segment = self._get_manual_segment(segment_id)
        customers = self._load_customers(segment.restaurant_id, customer_ids)
        existing = {customer.id for customer in segment.customers}
        for customer in customers:
            if customer.id not in existing:
                segment.customers.append(customer)
        segment.member_count = len(segment.customers)
        self.db.commit()
        self.db.refresh(segment)
        logger.info("Added %d customers to segment %s", len(customers), segment.id)
        return segment

    def remove_members(self, segment_id: int, customer_ids: Sequence[int]) -> Segment:
        segment = self._get_manual_segment(segment_id)
        remove = set(customer_ids)
        segment.customers = [c for c in segment.customers if c.id not in remove]
        segment.member_count = len(segment.customers)
        self.db.commit()
        self.db.refresh(segment)
        logger.info("Removed customers %s from segment %s", sorted(remove), segment.id)
        return segment

    def customer_activity(
        self, restaurant_id: int, criteria: SegmentCriteria, now: datetime
    ) -> Dict[int, CustomerActivity]:
        """Aggregate completed transactions per customer inside the criteria period"""
        customers = (
            self.db.query(Customer.id, Customer.visit_count)
            .filter(Customer.restaurant_id == restaurant_id)
            .all()
        )
        activity = {
            row.id: CustomerActivity(visit_count=row.visit_count or 0) for row in customers
        }

        query = self.db.query(
            Transaction.customer_id,
            func.count(Transaction.id),
            func.coalesce(func.sum(Transaction.final_amount), 0),
            func.max(Transaction.transaction_date),
        ).filter(
            Transaction.restaurant_id == restaurant_id,
            Transaction.status == TransactionStatus.COMPLETED,
        )
        if criteria.period.days is not None:
            query = query.filter(
                Transaction.transaction_date >= now - timedelta(days=criteria.period.days)
            )

        for customer_id, count, total, last in query.group_by(Transaction.customer_id):
            entry = activity.setdefault(customer_id, CustomerActivity())
            entry.purchase_count = count
            entry.total_spent = Decimal(str(total)).quantize(Decimal("0.01"))
            entry.last_purchase_at = last
        return activity

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------

    def _matching_customers(
        self, restaurant_id: int, criteria: SegmentCriteria, now: datetime
    ) -> List[Customer]:
        activity = self.customer_activity(restaurant_id, criteria, now)
        matched = [
            customer_id
            for customer_id, entry in activity.items()
            if matches_criteria(criteria, entry, now)
        ]
        if not matched:
            return []
        return self.db.query(Customer).filter(Customer.id.in_(matched)).all()

    def _check_criteria(self, is_automatic: bool, criteria: Optional[SegmentCriteria]) -> None:
        if is_automatic and (criteria is None or not criteria.predicates):
            raise APIValidationError.for_field(
                "criteria", "Automatic segments need at least one criteria predicate"
            )
        if not is_automatic and criteria is not None and criteria.predicates:
            raise APIValidationError.for_field(
                "criteria", "Manual segments cannot have criteria"
            )

    def _ensure_unique_name(self, restaurant_id: int, name: str) -> None:
        exists = (
            self.db.query(Segment.id)
            .filter(Segment.restaurant_id == restaurant_id, Segment.name == name)
            .first()
        )
        if exists:
            raise ConflictError(f"Segment '{name}' already exists", {"name": name})

    def _get_manual_segment(self, segment_id: int) -> Segment:
        segment = self.get_segment(segment_id)
        if segment.is_automatic:
            raise APIValidationError.for_field(
                "segment_id", "Members of automatic segments are managed by refresh"
            )
        return segment

    def _load_customers(self, restaurant_id: int, customer_ids: Sequence[int]) -> List[Customer]:
        customers = (
            self.db.query(Customer)
            .filter(Customer.id.in_(customer_ids), Customer.restaurant_id == restaurant_id)
            .all()
        )
        missing = sorted(set(customer_ids) - {c.id for c in customers})
        if missing:
            raise APIValidationError.for_field(
                "customer_ids", f"Unknown customers for this restaurant: {missing}"
            )
        return customers
