# backend/modules/customers/models/customer_models.py

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (Boolean, Column, Date, DateTime, Enum as SQLEnum, ForeignKey,
                        Index, Integer, JSON, Numeric, String, Table, Text, UniqueConstraint)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TimestampMixin


class CustomerLevel(str, Enum):
    """Ordinal loyalty level, lowest first"""
    REGULAR = "REGULAR"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"

    @property
    def ordinal(self) -> int:
        return LEVEL_ORDER.index(self)

    @classmethod
    def from_ordinal(cls, value: int) -> "CustomerLevel":
        return LEVEL_ORDER[max(0, min(value, len(LEVEL_ORDER) - 1))]


LEVEL_ORDER = list(CustomerLevel)


# Association table for segment membership
customer_segments = Table(
    "customer_segments",
    Base.metadata,
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True),
    Column("segment_id", Integer, ForeignKey("segments.id", ondelete="CASCADE"), primary_key=True),
    Column("added_at", DateTime, default=datetime.utcnow),
)


class LoyaltyTier(Base, TimestampMixin):
    """Configurable loyalty tier granting a point multiplier and a discount"""
    __tablename__ = "loyalty_tiers"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    display_name = Column(String(100), nullable=False)
    level = Column(Integer, nullable=False, default=0)  # ordinal, 0 = lowest
    point_multiplier = Column(Numeric(5, 2), nullable=False, default=Decimal("1.00"))
    discount_percent = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    min_points = Column(Integer, nullable=False, default=0)  # lifetime earned points
    color = Column(String(7), nullable=True)
    special_features = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    restaurant = relationship("Restaurant", back_populates="loyalty_tiers")
    customers = relationship("Customer", back_populates="tier")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_loyalty_tiers_restaurant_name"),
    )

    def __repr__(self):
        return f"<LoyaltyTier(name='{self.name}', level={self.level}, x{self.point_multiplier})>"


class Customer(Base, TimestampMixin):
    """Restaurant customer with loyalty balance and visit statistics"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True, unique=True, index=True)
    phone = Column(String(30), nullable=True, index=True)
    birth_date = Column(Date, nullable=True)

    # Loyalty; points only change through the PointHistory ledger
    points = Column(Integer, nullable=False, default=0)
    level = Column(SQLEnum(CustomerLevel), nullable=False, default=CustomerLevel.REGULAR, index=True)
    tier_id = Column(Integer, ForeignKey("loyalty_tiers.id"), nullable=True, index=True)

    # Statistics
    total_spent = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    visit_count = Column(Integer, nullable=False, default=0)
    last_visit = Column(DateTime, nullable=True)

    notes = Column(Text, nullable=True)

    restaurant = relationship("Restaurant", back_populates="customers")
    tier = relationship("LoyaltyTier", back_populates="customers")
    segments = relationship("Segment", secondary=customer_segments, back_populates="customers")
    transactions = relationship("Transaction", back_populates="customer",
                                cascade="all, delete-orphan", passive_deletes=True)
    point_history = relationship("PointHistory", back_populates="customer",
                                 passive_deletes="all", order_by="PointHistory.id")
    campaign_usages = relationship("CampaignUsage", back_populates="customer",
                                   cascade="all, delete-orphan", passive_deletes=True)
    push_subscriptions = relationship("PushSubscription", back_populates="customer",
                                      cascade="all, delete-orphan", passive_deletes=True)
    notifications = relationship("CustomerNotification", back_populates="customer",
                                 cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_customers_restaurant_level", "restaurant_id", "level"),
    )

    @property
    def point_multiplier(self) -> Decimal:
        if self.tier is not None and self.tier.is_active:
            return Decimal(self.tier.point_multiplier)
        return Decimal("1")

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', points={self.points})>"


class Segment(Base, TimestampMixin):
    """Named customer grouping, curated manually or derived from criteria"""
    __tablename__ = "segments"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    is_automatic = Column(Boolean, nullable=False, default=False)
    criteria = Column(JSON, nullable=True)  # validated SegmentCriteria document

    member_count = Column(Integer, nullable=False, default=0)
    last_refreshed_at = Column(DateTime, nullable=True)

    restaurant = relationship("Restaurant", back_populates="segments")
    customers = relationship("Customer", secondary=customer_segments, back_populates="segments")
    campaigns = relationship("Campaign", secondary="campaign_segments", back_populates="segments")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_segments_restaurant_name"),
    )

    def __repr__(self):
        return f"<Segment(id={self.id}, name='{self.name}', members={self.member_count})>"
