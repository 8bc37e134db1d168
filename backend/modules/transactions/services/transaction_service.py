# backend/modules/transactions/services/transaction_service.py

"""
Sales transactions.

Creating a transaction is one database transaction: the customer row is
locked, the basket is priced and discounted, campaign usages and the point
ledger are written and the customer's balance and statistics move together.
Any failure rolls back all of it.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from core.auth_context import RequestContext
from core.config import get_settings
from core.error_handling import APIError, APIValidationError, ConflictError, NotFoundError
from core.pagination import PaginationParams
from modules.campaigns.models.campaign_models import Campaign, CampaignType, CampaignUsage
from modules.campaigns.services.campaign_service import usage_counts
from modules.campaigns.services.discounts import (
    ZERO,
    BasketLine,
    applicability_error,
    calculate_discount,
    quantize,
)
from modules.campaigns.services.eligibility import ineligibility_reason
from modules.customers.models.customer_models import Customer
from modules.customers.services.tier_service import TierService
from modules.loyalty.models.point_history_models import PointSource, PointType
from modules.loyalty.services.points_ledger import PointsLedger, lock_customer
from modules.products.models.product_models import Product

from ..models.transaction_models import (
    AppliedCampaign,
    Transaction,
    TransactionItem,
    TransactionStatus,
)
from ..schemas.transaction_schemas import CampaignDiscount, TransactionCreate, TransactionPreview
from .points_accrual import base_points, campaign_bonus_points, tier_points

logger = logging.getLogger(__name__)


@dataclass
class QuotedLine:
    product_id: Optional[int]
    product_name: str
    category: Optional[str]
    quantity: int
    unit_price: Decimal
    notes: Optional[str] = None
    discount_amount: Decimal = ZERO

    @property
    def total_price(self) -> Decimal:
        return quantize(self.unit_price * self.quantity)

    @property
    def is_free(self) -> bool:
        return self.discount_amount >= self.total_price > 0


@dataclass
class QuotedCampaign:
    campaign: Campaign
    discount_amount: Decimal
    points_earned: int = 0


@dataclass
class Quote:
    """Priced basket; nothing persisted yet"""
    lines: List[QuotedLine]
    subtotal: Decimal
    campaigns: List[QuotedCampaign] = field(default_factory=list)
    discount_amount: Decimal = ZERO
    final_amount: Decimal = ZERO
    base_points: int = 0
    points_earned: int = 0


class TransactionService:
    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_transactions(
        self,
        pagination: PaginationParams,
        restaurant_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> dict:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        query = self.db.query(Transaction).filter(Transaction.restaurant_id == restaurant_id)
        if customer_id is not None:
            query = query.filter(Transaction.customer_id == customer_id)
        if date_from is not None:
            query = query.filter(Transaction.transaction_date >= date_from)
        if date_to is not None:
            query = query.filter(Transaction.transaction_date <= date_to)
        query = query.order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
        items, total = pagination.paginate_query(query)
        return pagination.page_of(items, total)

    def get_transaction(self, transaction_id: int) -> Transaction:
        transaction = (
            self.db.query(Transaction)
            .options(selectinload(Transaction.items), selectinload(Transaction.applied_campaigns))
            .filter(Transaction.id == transaction_id)
            .first()
        )
        if not transaction or not self.context.can_access_restaurant(transaction.restaurant_id):
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def preview_transaction(self, data: TransactionCreate) -> TransactionPreview:
        restaurant_id = self.context.resolve_restaurant_id(data.restaurant_id)
        customer = self.db.get(Customer, data.customer_id)
        if not customer or customer.restaurant_id != restaurant_id:
            raise NotFoundError("Customer", data.customer_id)

        at = data.transaction_date or datetime.utcnow()
        campaigns = self._load_campaigns(restaurant_id, data.campaign_ids, lock=False)
        quote = self.quote(customer, data, campaigns, at)
        self._check_points_used(customer, data.points_used)

        return TransactionPreview(
            customer_id=customer.id,
            subtotal=quote.subtotal,
            discounts=[
                CampaignDiscount(
                    campaign_id=applied.campaign.id,
                    campaign_name=applied.campaign.name,
                    discount_amount=applied.discount_amount,
                    points_earned=applied.points_earned,
                )
                for applied in quote.campaigns
            ],
            discount_amount=quote.discount_amount,
            final_amount=quote.final_amount,
            base_points=quote.base_points,
            points_earned=quote.points_earned,
            points_used=data.points_used,
            balance_after=customer.points - data.points_used + quote.points_earned,
        )

    def quote(
        self,
        customer: Customer,
        data: TransactionCreate,
        campaigns: List[Campaign],
        at: datetime,
    ) -> Quote:
        lines = self._price_lines(customer.restaurant_id, data)
        subtotal = sum((line.total_price for line in lines), ZERO)
        quote = Quote(lines=lines, subtotal=subtotal)

        self._check_campaigns(customer, campaigns, subtotal, at)

        basket = [BasketLine(line.product_id, line.quantity, line.unit_price) for line in lines]
        remaining = subtotal
        for campaign in campaigns:
            result = calculate_discount(campaign, basket)
            amount = min(result.amount, remaining)
            remaining -= amount
            if amount == result.amount:
                for index, line_amount in result.line_discounts.items():
                    lines[index].discount_amount += line_amount
            quote.campaigns.append(QuotedCampaign(campaign=campaign, discount_amount=amount))

        quote.discount_amount = quantize(subtotal - remaining)
        quote.final_amount = quantize(remaining)

        quote.base_points = base_points(quote.final_amount, get_settings().points_currency_divisor)
        earned = tier_points(quote.base_points, customer.point_multiplier)
        for applied in quote.campaigns:
            if applied.campaign.type == CampaignType.LOYALTY_POINTS:
                applied.points_earned = campaign_bonus_points(
                    quote.base_points, applied.campaign.points_multiplier
                )
                earned += applied.points_earned
        quote.points_earned = earned
        return quote

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_transaction(self, data: TransactionCreate) -> Transaction:
        restaurant_id = self.context.resolve_restaurant_id(data.restaurant_id)
        at = data.transaction_date or datetime.utcnow()
        order_number = data.order_number or self._generate_order_number(at)

        try:
            customer = lock_customer(self.db, data.customer_id)
            if not customer or customer.restaurant_id != restaurant_id:
                raise NotFoundError("Customer", data.customer_id)
            if data.order_number and self._order_number_taken(order_number):
                raise ConflictError(
                    f"Order number {order_number} already exists", {"order_number": order_number}
                )

            campaigns = self._load_campaigns(restaurant_id, data.campaign_ids, lock=True)
            quote = self.quote(customer, data, campaigns, at)
            self._check_points_used(customer, data.points_used)

            transaction = Transaction(
                restaurant_id=restaurant_id,
                customer_id=customer.id,
                order_number=order_number,
                status=TransactionStatus.COMPLETED,
                total_amount=quote.subtotal,
                discount_amount=quote.discount_amount,
                final_amount=quote.final_amount,
                points_earned=quote.points_earned,
                points_used=data.points_used,
                tier_id=customer.tier_id,
                payment_method=data.payment_method,
                notes=data.notes,
                transaction_date=at,
            )
            transaction.items = [
                TransactionItem(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    category=line.category,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line.total_price,
                    discount_amount=line.discount_amount,
                    is_free=line.is_free,
                    notes=line.notes,
                )
                for line in quote.lines
            ]
            transaction.applied_campaigns = [
                AppliedCampaign(
                    campaign_id=applied.campaign.id,
                    discount_amount=applied.discount_amount,
                    points_earned=applied.points_earned,
                )
                for applied in quote.campaigns
            ]
            self.db.add(transaction)
            self.db.flush()

            for applied in quote.campaigns:
                self.db.add(
                    CampaignUsage(
                        campaign_id=applied.campaign.id,
                        customer_id=customer.id,
                        transaction_id=transaction.id,
                        discount_amount=applied.discount_amount,
                        used_at=at,
                    )
                )

            ledger = PointsLedger(self.db)
            if data.points_used:
                ledger.record(
                    customer,
                    -data.points_used,
                    PointType.SPENT,
                    PointSource.PURCHASE,
                    description=f"Points used on order {order_number}",
                    transaction_id=transaction.id,
                    created_by=self.context.user_id,
                )
            if quote.points_earned:
                ledger.record(
                    customer,
                    quote.points_earned,
                    PointType.EARNED,
                    PointSource.PURCHASE,
                    description=f"Points earned on order {order_number}",
                    transaction_id=transaction.id,
                    created_by=self.context.user_id,
                )

            customer.total_spent = quantize(Decimal(customer.total_spent or 0) + quote.final_amount)
            customer.visit_count = (customer.visit_count or 0) + 1
            if customer.last_visit is None or at > customer.last_visit:
                customer.last_visit = at

            TierService(self.db, self.context).recalculate_tier(customer)
            self.db.commit()
        except APIError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to create transaction for customer %s", data.customer_id)
            raise

        self.db.refresh(transaction)
        logger.info(
            "Created transaction %s for customer %s: final %s, +%d/-%d points",
            transaction.order_number, customer.id, transaction.final_amount,
            transaction.points_earned, transaction.points_used,
        )
        return transaction

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------

    def _price_lines(self, restaurant_id: int, data: TransactionCreate) -> List[QuotedLine]:
        product_ids = {item.product_id for item in data.items if item.product_id is not None}
        products: Dict[int, Product] = {}
        if product_ids:
            products = {
                product.id: product
                for product in self.db.query(Product).filter(
                    Product.id.in_(product_ids), Product.restaurant_id == restaurant_id
                )
            }

        errors = []
        lines = []
        for index, item in enumerate(data.items):
            product = products.get(item.product_id) if item.product_id is not None else None
            if item.product_id is not None and product is None:
                errors.append({
                    "field": f"items.{index}.product_id",
                    "message": f"Unknown product {item.product_id}",
                })
                continue
            name = item.product_name or (product.name if product else None)
            price = item.unit_price if item.unit_price is not None else (product.price if product else None)
            if not name:
                errors.append({"field": f"items.{index}.product_name", "message": "product_name is required"})
            if price is None:
                errors.append({"field": f"items.{index}.unit_price", "message": "unit_price is required"})
            if not name or price is None:
                continue
            lines.append(
                QuotedLine(
                    product_id=item.product_id,
                    product_name=name,
                    category=item.category or (product.category if product else None),
                    quantity=item.quantity,
                    unit_price=quantize(price),
                    notes=item.notes,
                )
            )
        if errors:
            raise APIValidationError("Invalid transaction items", errors)
        return lines

    def _load_campaigns(self, restaurant_id: int, campaign_ids: List[int], lock: bool) -> List[Campaign]:
        if not campaign_ids:
            return []
        if len(set(campaign_ids)) != len(campaign_ids):
            raise APIValidationError.for_field("campaign_ids", "A campaign can only be applied once")

        query = self.db.query(Campaign).filter(
            Campaign.id.in_(campaign_ids), Campaign.restaurant_id == restaurant_id
        )
        if lock:
            query = query.with_for_update()
        found = {campaign.id: campaign for campaign in query}
        missing = [cid for cid in campaign_ids if cid not in found]
        if missing:
            raise APIValidationError.for_field("campaign_ids", f"Unknown campaigns: {missing}")
        return [found[cid] for cid in campaign_ids]

    def _check_campaigns(
        self, customer: Customer, campaigns: List[Campaign], subtotal: Decimal, at: datetime
    ) -> None:
        if not campaigns:
            return
        per_customer, total = usage_counts(self.db, [c.id for c in campaigns], customer.id)
        segment_ids = [segment.id for segment in customer.segments]
        errors = []
        for campaign in campaigns:
            reason = ineligibility_reason(
                campaign,
                at,
                segment_ids,
                per_customer.get(campaign.id, 0),
                total.get(campaign.id, 0),
            ) or applicability_error(campaign, subtotal, at, customer.birth_date)
            if reason:
                errors.append({"field": "campaign_ids", "message": f"{campaign.name}: {reason}"})
        if errors:
            logger.warning("Rejected campaigns for customer %s: %s", customer.id, errors)
            raise APIValidationError("Campaign cannot be applied", errors)

    @staticmethod
    def _check_points_used(customer: Customer, points_used: int) -> None:
        if points_used > (customer.points or 0):
            raise APIValidationError.for_field(
                "points_used",
                f"Cannot use {points_used} points, balance is {customer.points}",
            )

    def _order_number_taken(self, order_number: str) -> bool:
        return (
            self.db.query(Transaction.id)
            .filter(Transaction.order_number == order_number)
            .first()
            is not None
        )

    @staticmethod
    def _generate_order_number(at: datetime) -> str:
        return f"ORD-{at:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
