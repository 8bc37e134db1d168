# backend/modules/loyalty/services/loyalty_service.py

"""
Point history queries and administrative balance operations.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.config import get_settings
from core.error_handling import APIError, NotFoundError
from core.pagination import PaginationParams
from modules.customers.models.customer_models import Customer
from modules.customers.services.tier_service import TierService

from ..models.point_history_models import PointHistory, PointSource, PointType
from ..schemas.point_schemas import (
    BalanceAudit,
    ExpirePointsRequest,
    ExpirePointsResult,
    PointAdjustment,
    PointStats,
)
from .points_ledger import PointsLedger, lock_customer

logger = logging.getLogger(__name__)


class LoyaltyService:
    """Service for the point history ledger"""

    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context
        self.ledger = PointsLedger(db)

    # ========== Queries ==========

    def _history_query(
        self,
        restaurant_id: int,
        customer_id: Optional[int] = None,
        point_type: Optional[PointType] = None,
        source: Optional[PointSource] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ):
        query = (
            self.db.query(PointHistory)
            .join(Customer, Customer.id == PointHistory.customer_id)
            .filter(Customer.restaurant_id == restaurant_id)
        )
        if customer_id is not None:
            query = query.filter(PointHistory.customer_id == customer_id)
        if point_type is not None:
            query = query.filter(PointHistory.type == point_type)
        if source is not None:
            query = query.filter(PointHistory.source == source)
        if date_from is not None:
            query = query.filter(PointHistory.created_at >= date_from)
        if date_to is not None:
            query = query.filter(PointHistory.created_at <= date_to)
        return query

    def list_history(
        self,
        pagination: PaginationParams,
        restaurant_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        point_type: Optional[PointType] = None,
        source: Optional[PointSource] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> dict:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        query = self._history_query(
            restaurant_id, customer_id, point_type, source, date_from, date_to
        ).order_by(PointHistory.created_at.desc(), PointHistory.id.desc())
        items, total = pagination.paginate_query(query)
        rows = [
            {**_history_row(entry), "customer_name": entry.customer.name}
            for entry in items
        ]
        return pagination.page_of(rows, total)

    def customer_history(self, customer_id: int, pagination: PaginationParams) -> dict:
        customer = self._get_customer(customer_id)
        query = (
            self.db.query(PointHistory)
            .filter(PointHistory.customer_id == customer.id)
            .order_by(PointHistory.created_at.desc(), PointHistory.id.desc())
        )
        items, total = pagination.paginate_query(query)
        return pagination.page_of(items, total)

    def get_stats(
        self,
        restaurant_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> PointStats:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        query = self._history_query(
            restaurant_id, customer_id, date_from=date_from, date_to=date_to
        ).with_entities(PointHistory.type, func.coalesce(func.sum(PointHistory.amount), 0))
        totals = {point_type: int(total) for point_type, total in query.group_by(PointHistory.type)}

        earned = totals.get(PointType.EARNED, 0)
        spent = abs(totals.get(PointType.SPENT, 0))
        expired = abs(totals.get(PointType.EXPIRED, 0))
        return PointStats(
            total_earned=earned,
            total_spent=spent,
            total_expired=expired,
            net_balance=earned - spent - expired,
        )

    # ========== Balance operations ==========

    def adjust_points(self, customer_id: int, adjustment: PointAdjustment) -> PointHistory:
        """Manually adjust customer points"""
        self._get_customer(customer_id)
        try:
            customer = lock_customer(self.db, customer_id)
            point_type = PointType.EARNED if adjustment.amount > 0 else PointType.SPENT
            entry = self.ledger.record(
                customer,
                adjustment.amount,
                point_type,
                adjustment.source,
                description=adjustment.description,
                created_by=self.context.user_id,
            )
            if point_type == PointType.EARNED:
                TierService(self.db, self.context).recalculate_tier(customer)
            self.db.commit()
        except APIError:
            self.db.rollback()
            raise
        self.db.refresh(entry)
        logger.info(
            "Manual adjustment of %+d points for customer %s by user %s",
            adjustment.amount, customer_id, self.context.user_id,
        )
        return entry

    def expire_inactive_points(
        self, request: ExpirePointsRequest, now: Optional[datetime] = None
    ) -> ExpirePointsResult:
        """Expire the balance of customers without a visit in the expiry window"""
        restaurant_id = self.context.resolve_restaurant_id(request.restaurant_id)
        days = request.inactive_days or get_settings().points_expiry_days
        cutoff = (now or datetime.utcnow()) - timedelta(days=days)

        candidate_ids = [
            row.id
            for row in self.db.query(Customer.id).filter(
                Customer.restaurant_id == restaurant_id,
                Customer.points > 0,
                or_(Customer.last_visit.is_(None), Customer.last_visit < cutoff),
            )
        ]

        affected = 0
        expired = 0
        try:
            for customer_id in candidate_ids:
                customer = lock_customer(self.db, customer_id)
                if customer.points <= 0:
                    continue
                amount = customer.points
                self.ledger.record(
                    customer,
                    -amount,
                    PointType.EXPIRED,
                    PointSource.MANUAL,
                    description=f"Expired after {days} days without a visit",
                    created_by=self.context.user_id,
                )
                affected += 1
                expired += amount
            self.db.commit()
        except APIError:
            self.db.rollback()
            raise

        logger.info(
            "Expired %d points from %d customers of restaurant %s (cutoff %s)",
            expired, affected, restaurant_id, cutoff.isoformat(),
        )
        return ExpirePointsResult(customers_affected=affected, points_expired=expired)

    def verify_customer_balance(self, customer_id: int) -> BalanceAudit:
        customer = self._get_customer(customer_id)
        ledger_sum = self.ledger.ledger_sum(customer.id)
        consistent = ledger_sum == customer.points
        if not consistent:
            logger.error(
                "Ledger mismatch for customer %s: balance %s, ledger %s",
                customer.id, customer.points, ledger_sum,
            )
        return BalanceAudit(
            customer_id=customer.id,
            balance=customer.points,
            ledger_sum=ledger_sum,
            consistent=consistent,
        )

    def _get_customer(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer or not self.context.can_access_restaurant(customer.restaurant_id):
            raise NotFoundError("Customer", customer_id)
        return customer


def _history_row(entry: PointHistory) -> dict:
    return {
        "id": entry.id,
        "customer_id": entry.customer_id,
        "amount": entry.amount,
        "type": entry.type,
        "source": entry.source,
        "description": entry.description,
        "transaction_id": entry.transaction_id,
        "balance_after": entry.balance_after,
        "created_at": entry.created_at,
    }
