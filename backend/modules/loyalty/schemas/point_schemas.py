# backend/modules/loyalty/schemas/point_schemas.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.point_history_models import PointSource, PointType


class PointHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    amount: int
    type: PointType
    source: PointSource
    description: Optional[str] = None
    transaction_id: Optional[int] = None
    balance_after: int
    created_at: datetime


class PointHistoryWithCustomer(PointHistoryResponse):
    customer_name: Optional[str] = None


class PointStats(BaseModel):
    """Aggregate ledger figures; spent and expired are reported as positive numbers"""
    total_earned: int = 0
    total_spent: int = 0
    total_expired: int = 0
    net_balance: int = 0


class PointAdjustment(BaseModel):
    """Manual balance correction by an admin"""
    amount: int = Field(..., description="Signed number of points")
    description: str = Field(..., min_length=3, max_length=255)
    source: PointSource = PointSource.MANUAL

    @field_validator("amount")
    @classmethod
    def amount_not_zero(cls, v):
        if v == 0:
            raise ValueError("amount must not be zero")
        return v

    @field_validator("source")
    @classmethod
    def manual_sources_only(cls, v):
        if v not in (PointSource.MANUAL, PointSource.BONUS):
            raise ValueError("source must be MANUAL or BONUS")
        return v


class ExpirePointsRequest(BaseModel):
    restaurant_id: Optional[int] = None
    inactive_days: Optional[int] = Field(None, ge=1)


class ExpirePointsResult(BaseModel):
    customers_affected: int
    points_expired: int


class BalanceAudit(BaseModel):
    customer_id: int
    balance: int
    ledger_sum: int
    consistent: bool
