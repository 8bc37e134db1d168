# backend/modules/transactions/schemas/transaction_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.datetime_utils import UTCDateTime

from ..models.transaction_models import PaymentMethod, TransactionStatus


class TransactionItemCreate(BaseModel):
    """Basket line; name, category and price default to the product's"""
    product_id: Optional[int] = None
    product_name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, max_length=100)
    quantity: int = Field(..., ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None


class TransactionCreate(BaseModel):
    customer_id: int
    restaurant_id: Optional[int] = None
    items: List[TransactionItemCreate] = Field(..., min_length=1)
    campaign_ids: List[int] = Field(default_factory=list)
    points_used: int = Field(0, ge=0)
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    order_number: Optional[str] = Field(None, max_length=50)
    transaction_date: Optional[UTCDateTime] = None


class TransactionItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int] = None
    product_name: str
    category: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    discount_amount: Decimal
    is_free: bool
    notes: Optional[str] = None


class AppliedCampaignResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    campaign_id: int
    discount_amount: Decimal
    points_earned: int


class TransactionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    order_number: str
    status: TransactionStatus
    total_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    points_earned: int
    points_used: int
    transaction_date: datetime


class TransactionResponse(TransactionSummary):
    restaurant_id: int
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    tier_id: Optional[int] = None
    items: List[TransactionItemResponse] = []
    applied_campaigns: List[AppliedCampaignResponse] = []
    created_at: datetime


class CampaignDiscount(BaseModel):
    campaign_id: int
    campaign_name: str
    discount_amount: Decimal
    points_earned: int = 0


class TransactionPreview(BaseModel):
    """Computed totals of a basket, nothing persisted"""
    customer_id: int
    subtotal: Decimal
    discounts: List[CampaignDiscount] = []
    discount_amount: Decimal
    final_amount: Decimal
    base_points: int
    points_earned: int
    points_used: int
    balance_after: int
