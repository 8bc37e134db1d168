# backend/modules/notifications/models/notification_models.py

from datetime import datetime
from enum import Enum

from sqlalchemy import (Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Index,
                        Integer, JSON, String, Text, UniqueConstraint)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TimestampMixin


class NotificationType(str, Enum):
    CAMPAIGN = "CAMPAIGN"
    REWARD = "REWARD"
    BROADCAST = "BROADCAST"
    INFO = "INFO"


class TargetType(str, Enum):
    ALL = "all"
    SEGMENT = "segment"
    TIER = "tier"
    CUSTOM = "custom"


class DeliveryStatus(str, Enum):
    SENT = "SENT"
    FAILED = "FAILED"
    READ = "READ"


class PushSubscription(Base, TimestampMixin):
    """Browser or device push endpoint registered by a customer"""
    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    endpoint = Column(String(500), nullable=False)
    p256dh = Column(String(255), nullable=True)
    auth = Column(String(255), nullable=True)
    user_agent = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    customer = relationship("Customer", back_populates="push_subscriptions")

    __table_args__ = (
        UniqueConstraint("customer_id", "endpoint", name="uq_push_subscriptions_customer_endpoint"),
    )


class NotificationLog(Base):
    """One send action by an admin, with its delivery counts"""
    __tablename__ = "notification_logs"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False, default=NotificationType.INFO)
    target_type = Column(SQLEnum(TargetType), nullable=False)
    target_filters = Column(JSON, nullable=True)  # segment ids, tier levels, ...
    target_customer_ids = Column(JSON, nullable=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    sent_count = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    deliveries = relationship("CustomerNotification", back_populates="log")


class CustomerNotification(Base):
    """Per-customer inbox entry"""
    __tablename__ = "customer_notifications"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    log_id = Column(Integer, ForeignKey("notification_logs.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False, default=NotificationType.INFO)
    status = Column(SQLEnum(DeliveryStatus), nullable=False, default=DeliveryStatus.SENT)
    failure_reason = Column(String(255), nullable=True)
    data = Column(JSON, nullable=True)
    sent_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    read_at = Column(DateTime, nullable=True)

    customer = relationship("Customer", back_populates="notifications")
    log = relationship("NotificationLog", back_populates="deliveries")

    __table_args__ = (
        Index("ix_customer_notifications_customer_sent", "customer_id", "sent_at"),
    )
