# backend/modules/notifications/schemas/notification_schemas.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.customers.models.customer_models import CustomerLevel

from ..models.notification_models import DeliveryStatus, NotificationType, TargetType


class NotificationSend(BaseModel):
    restaurant_id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    type: NotificationType = NotificationType.BROADCAST
    target_type: TargetType = TargetType.ALL
    segment_ids: List[int] = Field(default_factory=list)
    tier_levels: List[CustomerLevel] = Field(default_factory=list)
    customer_ids: List[int] = Field(default_factory=list)
    data: Optional[Dict[str, Any]] = None


class NotificationLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    restaurant_id: int
    title: str
    message: str
    type: NotificationType
    target_type: TargetType
    target_filters: Optional[Dict[str, Any]] = None
    campaign_id: Optional[int] = None
    sent_count: int
    failed_count: int
    created_by: Optional[int] = None
    created_at: datetime


class PushKeys(BaseModel):
    p256dh: str = Field(..., min_length=1, max_length=255)
    auth: str = Field(..., min_length=1, max_length=255)


class PushSubscriptionCreate(BaseModel):
    endpoint: str = Field(..., min_length=10, max_length=500)
    keys: Optional[PushKeys] = None
    user_agent: Optional[str] = Field(None, max_length=255)


class PushSubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    endpoint: str
    is_active: bool
    created_at: datetime


class PushEnabledCustomer(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    level: CustomerLevel
    subscription_count: int


class CustomerNotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    title: str
    message: str
    type: NotificationType
    status: DeliveryStatus
    failure_reason: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    sent_at: datetime
    read_at: Optional[datetime] = None
