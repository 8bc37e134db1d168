# backend/modules/dashboard/services/dashboard_service.py

"""Headline figures for the admin dashboard of one restaurant."""

import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from modules.campaigns.models.campaign_models import Campaign
from modules.customers.models.customer_models import Customer, Segment
from modules.transactions.models.transaction_models import (
    Transaction,
    TransactionItem,
    TransactionStatus,
)

from ..schemas.dashboard_schemas import (
    CampaignFigures,
    CustomerFigures,
    DailyRevenue,
    DashboardStats,
    RecentActivity,
    RevenueFigures,
    SegmentFigures,
    TopProduct,
    TransactionFigures,
)

logger = logging.getLogger(__name__)

RECENT_ACTIVITY = 5
TOP_PRODUCTS = 5
REVENUE_DAYS = 7


def growth_percent(current, previous) -> int:
    """Month over month change in whole percent"""
    if not previous:
        return 100 if current and current > 0 else 0
    change = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    return int(change.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def month_bounds(now: datetime):
    this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_month = (this_month - timedelta(days=1)).replace(day=1)
    return this_month, last_month


class DashboardService:
    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    def get_stats(self, restaurant_id: Optional[int] = None, now: Optional[datetime] = None) -> DashboardStats:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        now = now or datetime.utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        this_month, last_month = month_bounds(now)

        stats = DashboardStats(
            generated_at=now,
            customers=self._customer_figures(restaurant_id, this_month, last_month),
            campaigns=self._campaign_figures(restaurant_id, now, today),
            segments=self._segment_figures(restaurant_id, this_month),
            transactions=self._transaction_figures(restaurant_id, this_month, last_month),
            revenue=self._revenue_figures(restaurant_id, today, this_month, last_month),
            recent_activity=self._recent_activity(restaurant_id),
            top_products=self._top_products(restaurant_id, this_month),
            revenue_by_day=self._revenue_by_day(restaurant_id, today),
        )
        logger.debug("Computed dashboard stats for restaurant %s", restaurant_id)
        return stats

    def _count(self, model, restaurant_id, *criteria) -> int:
        return (
            self.db.query(func.count(model.id))
            .filter(model.restaurant_id == restaurant_id, *criteria)
            .scalar()
            or 0
        )

    def _customer_figures(self, restaurant_id, this_month, last_month) -> CustomerFigures:
        current = self._count(Customer, restaurant_id, Customer.created_at >= this_month)
        previous = self._count(
            Customer, restaurant_id,
            Customer.created_at >= last_month, Customer.created_at < this_month,
        )
        return CustomerFigures(
            total=self._count(Customer, restaurant_id),
            this_month=current,
            growth=growth_percent(current, previous),
        )

    def _campaign_figures(self, restaurant_id, now, today) -> CampaignFigures:
        active = (Campaign.is_active.is_(True), Campaign.start_date <= now, Campaign.end_date >= now)
        return CampaignFigures(
            total=self._count(Campaign, restaurant_id),
            active=self._count(Campaign, restaurant_id, *active),
            ending_today=self._count(
                Campaign, restaurant_id, *active, Campaign.end_date < today + timedelta(days=1)
            ),
        )

    def _segment_figures(self, restaurant_id, this_month) -> SegmentFigures:
        return SegmentFigures(
            total=self._count(Segment, restaurant_id),
            this_month=self._count(Segment, restaurant_id, Segment.created_at >= this_month),
        )

    def _transaction_figures(self, restaurant_id, this_month, last_month) -> TransactionFigures:
        current = self._count(Transaction, restaurant_id, Transaction.transaction_date >= this_month)
        previous = self._count(
            Transaction, restaurant_id,
            Transaction.transaction_date >= last_month,
            Transaction.transaction_date < this_month,
        )
        return TransactionFigures(
            total=self._count(Transaction, restaurant_id),
            this_month=current,
            growth=growth_percent(current, previous),
        )

    def _revenue(self, restaurant_id, start, end=None) -> Decimal:
        query = self.db.query(func.coalesce(func.sum(Transaction.final_amount), 0)).filter(
            Transaction.restaurant_id == restaurant_id,
            Transaction.status == TransactionStatus.COMPLETED,
            Transaction.transaction_date >= start,
        )
        if end is not None:
            query = query.filter(Transaction.transaction_date < end)
        return Decimal(str(query.scalar() or 0)).quantize(Decimal("0.01"))

    def _revenue_figures(self, restaurant_id, today, this_month, last_month) -> RevenueFigures:
        current = self._revenue(restaurant_id, this_month)
        previous = self._revenue(restaurant_id, last_month, this_month)
        return RevenueFigures(
            today=self._revenue(restaurant_id, today),
            this_month=current,
            growth=growth_percent(current, previous),
        )

    def _recent_activity(self, restaurant_id):
        rows = (
            self.db.query(Transaction, Customer.name)
            .join(Customer, Customer.id == Transaction.customer_id)
            .filter(Transaction.restaurant_id == restaurant_id)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .limit(RECENT_ACTIVITY)
            .all()
        )
        return [
            RecentActivity(
                transaction_id=transaction.id,
                order_number=transaction.order_number,
                customer_id=transaction.customer_id,
                customer_name=name,
                final_amount=transaction.final_amount,
                points_earned=transaction.points_earned,
                transaction_date=transaction.transaction_date,
            )
            for transaction, name in rows
        ]

    def _top_products(self, restaurant_id, this_month):
        quantity = func.sum(TransactionItem.quantity).label("quantity")
        rows = (
            self.db.query(
                TransactionItem.product_name,
                quantity,
                func.coalesce(func.sum(TransactionItem.total_price), 0),
            )
            .join(Transaction, Transaction.id == TransactionItem.transaction_id)
            .filter(
                Transaction.restaurant_id == restaurant_id,
                Transaction.status == TransactionStatus.COMPLETED,
                Transaction.transaction_date >= this_month,
            )
            .group_by(TransactionItem.product_name)
            .order_by(quantity.desc(), TransactionItem.product_name)
            .limit(TOP_PRODUCTS)
            .all()
        )
        return [
            TopProduct(
                product_name=name,
                quantity=int(qty),
                revenue=Decimal(str(revenue)).quantize(Decimal("0.01")),
            )
            for name, qty, revenue in rows
        ]

    def _revenue_by_day(self, restaurant_id, today):
        start = today - timedelta(days=REVENUE_DAYS - 1)
        transactions = (
            self.db.query(Transaction.transaction_date, Transaction.final_amount)
            .filter(
                Transaction.restaurant_id == restaurant_id,
                Transaction.status == TransactionStatus.COMPLETED,
                Transaction.transaction_date >= start,
            )
            .all()
        )
        days = {
            (start + timedelta(days=offset)).date(): [Decimal("0.00"), 0]
            for offset in range(REVENUE_DAYS)
        }
        for transaction_date, amount in transactions:
            bucket = days.get(transaction_date.date())
            if bucket is not None:
                bucket[0] += Decimal(amount)
                bucket[1] += 1
        return [
            DailyRevenue(date=day, revenue=revenue.quantize(Decimal("0.01")), transactions=count)
            for day, (revenue, count) in days.items()
        ]
