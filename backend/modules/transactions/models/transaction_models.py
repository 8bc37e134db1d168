# backend/modules/transactions/models/transaction_models.py

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Index,
                        Integer, Numeric, String, Text)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TimestampMixin


class TransactionStatus(str, Enum):
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    MOBILE = "MOBILE"


class Transaction(Base, TimestampMixin):
    """Completed sale; immutable once written"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    status = Column(SQLEnum(TransactionStatus), nullable=False, default=TransactionStatus.COMPLETED, index=True)

    # Amounts
    total_amount = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    final_amount = Column(Numeric(12, 2), nullable=False)

    # Loyalty
    points_earned = Column(Integer, nullable=False, default=0)
    points_used = Column(Integer, nullable=False, default=0)
    tier_id = Column(Integer, ForeignKey("loyalty_tiers.id", ondelete="SET NULL"), nullable=True)  # tier at purchase time

    payment_method = Column(SQLEnum(PaymentMethod), nullable=True)
    notes = Column(Text, nullable=True)
    transaction_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    customer = relationship("Customer", back_populates="transactions")
    tier = relationship("LoyaltyTier")
    items = relationship("TransactionItem", back_populates="transaction",
                         cascade="all, delete-orphan", order_by="TransactionItem.id")
    applied_campaigns = relationship("AppliedCampaign", back_populates="transaction",
                                     cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_transactions_customer_date", "customer_id", "transaction_date"),
        Index("ix_transactions_restaurant_date", "restaurant_id", "transaction_date"),
    )

    def __repr__(self):
        return f"<Transaction(id={self.id}, order='{self.order_number}', final={self.final_amount})>"


class TransactionItem(Base):
    """Line item of a transaction"""
    __tablename__ = "transaction_items"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    is_free = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    transaction = relationship("Transaction", back_populates="items")


class AppliedCampaign(Base):
    """Campaign applied to a transaction and what it contributed"""
    __tablename__ = "applied_campaigns"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=False, index=True)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    points_earned = Column(Integer, nullable=False, default=0)

    transaction = relationship("Transaction", back_populates="applied_campaigns")
    campaign = relationship("Campaign")
