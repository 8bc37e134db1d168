# backend/modules/customers/schemas/customer_schemas.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from modules.campaigns.schemas.campaign_schemas import CampaignSummary
from modules.loyalty.schemas.point_schemas import PointHistoryResponse
from modules.transactions.schemas.transaction_schemas import TransactionSummary

from ..models.customer_models import CustomerLevel


# Tier schemas
class LoyaltyTierBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    display_name: str = Field(..., min_length=2, max_length=100)
    level: int = Field(0, ge=0, description="Ordinal, 0 is the lowest tier")
    point_multiplier: Decimal = Field(Decimal("1.00"), ge=1, max_digits=5, decimal_places=2)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100, max_digits=5, decimal_places=2)
    min_points: int = Field(0, ge=0, description="Lifetime earned points needed")
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    special_features: Optional[List[str]] = None
    is_active: bool = True


class LoyaltyTierCreate(LoyaltyTierBase):
    restaurant_id: Optional[int] = None


class LoyaltyTierUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=2, max_length=100)
    level: Optional[int] = Field(None, ge=0)
    point_multiplier: Optional[Decimal] = Field(None, ge=1, max_digits=5, decimal_places=2)
    discount_percent: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    min_points: Optional[int] = Field(None, ge=0)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    special_features: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("display_name", "level", "point_multiplier", "discount_percent",
                     "min_points", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class LoyaltyTierResponse(LoyaltyTierBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    restaurant_id: int
    created_at: datetime


# Customer schemas
class CustomerBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    birth_date: Optional[date] = None
    notes: Optional[str] = None


class CustomerCreate(CustomerBase):
    restaurant_id: Optional[int] = None


class CustomerUpdate(BaseModel):
    """Profile fields only; the point balance changes through the ledger"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=2, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    birth_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class CustomerResponse(CustomerBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    restaurant_id: int
    points: int
    level: CustomerLevel
    tier_id: Optional[int] = None
    total_spent: Decimal
    visit_count: int
    last_visit: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CustomerStats(BaseModel):
    total_spent: Decimal
    total_visits: int
    average_spent: Decimal
    current_points: int
    total_points_earned: int
    total_points_spent: int


class CustomerDetail(BaseModel):
    customer: CustomerResponse
    tier: Optional[LoyaltyTierResponse] = None
    recent_transactions: List[TransactionSummary] = []
    point_history: List[PointHistoryResponse] = []
    segments: List[str] = []
    available_campaigns: List[CampaignSummary] = []
    stats: CustomerStats


class TierRecalculation(BaseModel):
    customer_id: int
    previous_tier_id: Optional[int] = None
    tier_id: Optional[int] = None
    level: CustomerLevel
    lifetime_points: int
    changed: bool


class CustomerFilters(BaseModel):
    """Query filters of the customer list"""
    search: Optional[str] = None
    level: Optional[CustomerLevel] = None
    segment_id: Optional[int] = None
    restaurant_id: Optional[int] = None
