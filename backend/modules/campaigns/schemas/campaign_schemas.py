# backend/modules/campaigns/schemas/campaign_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.datetime_utils import UTCDateTime

from ..models.campaign_models import CampaignType, DiscountType


class ValidHours(BaseModel):
    """Daily window, 24h clock; start > end wraps past midnight"""
    start: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


class CampaignBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    description: str = Field(..., min_length=10)
    type: CampaignType
    start_date: UTCDateTime
    end_date: UTCDateTime
    is_active: bool = True

    discount_type: DiscountType
    discount_value: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    min_purchase: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    target_products: Optional[List[int]] = None
    free_products: Optional[List[int]] = None
    buy_quantity: Optional[int] = Field(None, ge=1)

    max_usage: Optional[int] = Field(None, ge=1)
    max_usage_per_customer: Optional[int] = Field(1, ge=1)

    valid_hours: Optional[ValidHours] = None
    valid_days: Optional[List[int]] = None

    points_multiplier: Decimal = Field(Decimal("1"), ge=1, max_digits=5, decimal_places=2)
    points_required: Optional[int] = Field(None, ge=0)

    send_notification: bool = True
    notification_title: Optional[str] = Field(None, max_length=200)
    notification_message: Optional[str] = None

    @field_validator("valid_days")
    @classmethod
    def validate_days(cls, v):
        if v is not None and any(day < 1 or day > 7 for day in v):
            raise ValueError("valid_days must be ISO weekdays 1-7")
        return v


class CampaignCreate(CampaignBase):
    restaurant_id: Optional[int] = None
    segment_ids: List[int] = Field(default_factory=list)


class CampaignUpdate(BaseModel):
    """Partial update; cross-field rules are checked against the merged result"""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, min_length=10)
    type: Optional[CampaignType] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    is_active: Optional[bool] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    min_purchase: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    target_products: Optional[List[int]] = None
    free_products: Optional[List[int]] = None
    buy_quantity: Optional[int] = Field(None, ge=1)
    max_usage: Optional[int] = Field(None, ge=1)
    max_usage_per_customer: Optional[int] = Field(None, ge=1)
    valid_hours: Optional[ValidHours] = None
    valid_days: Optional[List[int]] = None
    points_multiplier: Optional[Decimal] = Field(None, ge=1, max_digits=5, decimal_places=2)
    points_required: Optional[int] = Field(None, ge=0)
    send_notification: Optional[bool] = None
    notification_title: Optional[str] = Field(None, max_length=200)
    notification_message: Optional[str] = None
    segment_ids: Optional[List[int]] = None

    @field_validator("valid_days")
    @classmethod
    def validate_days(cls, v):
        if v is not None and any(day < 1 or day > 7 for day in v):
            raise ValueError("valid_days must be ISO weekdays 1-7")
        return v

    @field_validator("name", "description", "type", "start_date", "end_date", "is_active",
                     "discount_type", "discount_value", "points_multiplier", "send_notification",
                     "segment_ids")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class SegmentRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class CampaignSummary(BaseModel):
    """Compact form used in customer and mobile views"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    type: CampaignType
    discount_type: DiscountType
    discount_value: Decimal
    min_purchase: Optional[Decimal] = None
    start_date: datetime
    end_date: datetime
    points_multiplier: Decimal


class CampaignResponse(CampaignBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    restaurant_id: int
    segments: List[SegmentRef] = []
    usage_count: int = 0
    created_at: datetime
    updated_at: datetime


class StampCard(BaseModel):
    campaign_id: int
    campaign_name: str
    buy_quantity: int
    total_purchased: int
    stamps_earned: int
    stamps_used: int
    stamps_available: int
    progress_to_next: int
    remaining_for_next_stamp: int
    max_stamps: Optional[int] = None
    can_earn_more: bool
    end_date: datetime
