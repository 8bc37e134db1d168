# backend/modules/customers/services/customer_service.py

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.error_handling import APIError, ConflictError, NotFoundError
from core.pagination import PaginationParams
from modules.campaigns.services.campaign_service import available_campaigns
from modules.loyalty.models.point_history_models import PointHistory, PointType
from modules.transactions.models.transaction_models import Transaction

from ..models.customer_models import Customer, Segment, customer_segments
from ..schemas.customer_schemas import (
    CustomerCreate,
    CustomerDetail,
    CustomerFilters,
    CustomerStats,
    CustomerUpdate,
)
from .tier_service import TierService

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS = 10
RECENT_POINT_HISTORY = 20


class CustomerService:
    """Customer records, their detail view and statistics"""

    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    def list_customers(self, filters: CustomerFilters, pagination: PaginationParams) -> dict:
        restaurant_id = self.context.resolve_restaurant_id(filters.restaurant_id)
        query = self.db.query(Customer).filter(Customer.restaurant_id == restaurant_id)

        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(pattern),
                    Customer.email.ilike(pattern),
                    Customer.phone.ilike(pattern),
                )
            )
        if filters.level:
            query = query.filter(Customer.level == filters.level)
        if filters.segment_id:
            query = query.join(
                customer_segments, customer_segments.c.customer_id == Customer.id
            ).filter(customer_segments.c.segment_id == filters.segment_id)

        query = query.order_by(Customer.created_at.desc(), Customer.id.desc())
        items, total = pagination.paginate_query(query)
        return pagination.page_of(items, total)

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer or not self.context.can_access_restaurant(customer.restaurant_id):
            raise NotFoundError("Customer", customer_id)
        return customer

    def create_customer(self, data: CustomerCreate) -> Customer:
        restaurant_id = self.context.resolve_restaurant_id(data.restaurant_id)
        if data.email:
            self._ensure_unique_email(data.email)

        try:
            customer = Customer(
                restaurant_id=restaurant_id,
                **data.model_dump(exclude={"restaurant_id"}),
            )
            self.db.add(customer)
            self.db.flush()
            TierService(self.db, self.context).recalculate_tier(customer)
            self.db.commit()
        except APIError:
            self.db.rollback()
            raise
        self.db.refresh(customer)
        logger.info("Created customer %s (ID: %s)", customer.name, customer.id)
        return customer

    def update_customer(self, customer_id: int, data: CustomerUpdate) -> Customer:
        customer = self.get_customer(customer_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("email") and changes["email"] != customer.email:
            self._ensure_unique_email(changes["email"])

        for field, value in changes.items():
            setattr(customer, field, value)
        self.db.commit()
        self.db.refresh(customer)
        logger.info("Updated customer %s: %s", customer.id, sorted(changes))
        return customer

    def delete_customer(self, customer_id: int) -> None:
        """Remove a customer together with their history"""
        customer = self.get_customer(customer_id)
        self.db.delete(customer)
        self.db.commit()
        logger.warning("Deleted customer %s and their history", customer_id)

    def get_customer_detail(self, customer_id: int, now: Optional[datetime] = None) -> CustomerDetail:
        customer = self.get_customer(customer_id)
        now = now or datetime.utcnow()

        transactions = (
            self.db.query(Transaction)
            .filter(Transaction.customer_id == customer.id)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .limit(RECENT_TRANSACTIONS)
            .all()
        )
        point_history = (
            self.db.query(PointHistory)
            .filter(PointHistory.customer_id == customer.id)
            .order_by(PointHistory.created_at.desc(), PointHistory.id.desc())
            .limit(RECENT_POINT_HISTORY)
            .all()
        )
        segments = (
            self.db.query(Segment.name)
            .join(customer_segments, customer_segments.c.segment_id == Segment.id)
            .filter(customer_segments.c.customer_id == customer.id)
            .order_by(Segment.name)
            .all()
        )

        return CustomerDetail(
            customer=customer,
            tier=customer.tier,
            recent_transactions=transactions,
            point_history=point_history,
            segments=[row.name for row in segments],
            available_campaigns=available_campaigns(self.db, customer, now),
            stats=self.get_stats(customer),
        )

    def get_stats(self, customer: Customer) -> CustomerStats:
        totals = dict(
            self.db.query(PointHistory.type, func.coalesce(func.sum(PointHistory.amount), 0))
            .filter(PointHistory.customer_id == customer.id)
            .group_by(PointHistory.type)
            .all()
        )
        total_spent = Decimal(customer.total_spent or 0)
        visits = customer.visit_count or 0
        average = (total_spent / visits).quantize(Decimal("0.01")) if visits else Decimal("0.00")
        return CustomerStats(
            total_spent=total_spent,
            total_visits=visits,
            average_spent=average,
            current_points=customer.points,
            total_points_earned=int(totals.get(PointType.EARNED, 0)),
            total_points_spent=abs(int(totals.get(PointType.SPENT, 0))),
        )

    def _ensure_unique_email(self, email: str) -> None:
        if self.db.query(Customer.id).filter(Customer.email == email).first():
            raise ConflictError("A customer with this email already exists", {"email": email})
