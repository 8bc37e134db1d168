# backend/modules/campaigns/models/campaign_models.py

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Index,
                        Integer, JSON, Numeric, String, Table, Text, UniqueConstraint)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TimestampMixin


class CampaignType(str, Enum):
    """Types of campaigns"""
    DISCOUNT = "DISCOUNT"                    # Plain discount
    PRODUCT_BASED = "PRODUCT_BASED"          # Tied to products, drives stamp cards
    LOYALTY_POINTS = "LOYALTY_POINTS"        # Extra points multiplier
    TIME_BASED = "TIME_BASED"                # Happy hour style
    BIRTHDAY_SPECIAL = "BIRTHDAY_SPECIAL"    # Birthday month only
    COMBO_DEAL = "COMBO_DEAL"                # Product combinations


class DiscountType(str, Enum):
    """Shape of the discount a campaign grants"""
    PERCENTAGE = "PERCENTAGE"                # 20% off
    FIXED_AMOUNT = "FIXED_AMOUNT"            # 50 TL off
    FREE_ITEM = "FREE_ITEM"                  # One free product
    BUY_ONE_GET_ONE = "BUY_ONE_GET_ONE"      # Every second item free


campaign_segments = Table(
    "campaign_segments",
    Base.metadata,
    Column("campaign_id", Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), primary_key=True),
    Column("segment_id", Integer, ForeignKey("segments.id", ondelete="CASCADE"), primary_key=True),
)


class Campaign(Base, TimestampMixin):
    """Time-bounded promotional rule with discount shape and usage caps"""
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(SQLEnum(CampaignType), nullable=False, index=True)

    # Validity window
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    valid_hours = Column(JSON, nullable=True)  # {"start": "14:00", "end": "17:00"}
    valid_days = Column(JSON, nullable=True)   # ISO weekdays, 1 = Monday

    # Discount configuration
    discount_type = Column(SQLEnum(DiscountType), nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    min_purchase = Column(Numeric(12, 2), nullable=True)
    target_products = Column(JSON, nullable=True)  # product ids
    free_products = Column(JSON, nullable=True)    # product ids
    buy_quantity = Column(Integer, nullable=True)  # stamp card threshold

    # Usage limits, null means unlimited
    max_usage = Column(Integer, nullable=True)
    max_usage_per_customer = Column(Integer, nullable=True, default=1)

    # Loyalty
    points_multiplier = Column(Numeric(5, 2), nullable=False, default=Decimal("1.00"))
    points_required = Column(Integer, nullable=True)

    # Notification
    send_notification = Column(Boolean, nullable=False, default=True)
    notification_title = Column(String(200), nullable=True)
    notification_message = Column(Text, nullable=True)

    restaurant = relationship("Restaurant", back_populates="campaigns")
    segments = relationship("Segment", secondary=campaign_segments, back_populates="campaigns")
    usages = relationship("CampaignUsage", back_populates="campaign", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_campaigns_restaurant_name"),
        Index("ix_campaigns_active_window", "is_active", "start_date", "end_date"),
    )

    def is_running(self, now: datetime) -> bool:
        return bool(self.is_active) and self.start_date <= now <= self.end_date

    def __repr__(self):
        return f"<Campaign(id={self.id}, name='{self.name}', type='{self.type}')>"


class CampaignUsage(Base):
    """One application of a campaign to a customer's transaction"""
    __tablename__ = "campaign_usages"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    used_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    campaign = relationship("Campaign", back_populates="usages")
    customer = relationship("Customer", back_populates="campaign_usages")

    __table_args__ = (
        Index("ix_campaign_usages_campaign_customer", "campaign_id", "customer_id"),
    )
