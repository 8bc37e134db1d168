# backend/modules/customers/schemas/segment_schemas.py

"""
Segment schemas and the typed criteria document.

Automatic segments store a ``SegmentCriteria``: a period plus a list of
range predicates discriminated by ``kind``. The older flat camelCase form
(``{"purchaseCount": {"min": 20}, "period": "last_90_days"}``) is still
accepted and normalized on input.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CriteriaPeriod(str, Enum):
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    LAST_365_DAYS = "last_365_days"
    ALL_TIME = "all_time"

    @property
    def days(self) -> Optional[int]:
        return PERIOD_DAYS[self]


PERIOD_DAYS = {
    CriteriaPeriod.LAST_7_DAYS: 7,
    CriteriaPeriod.LAST_30_DAYS: 30,
    CriteriaPeriod.LAST_90_DAYS: 90,
    CriteriaPeriod.LAST_365_DAYS: 365,
    CriteriaPeriod.ALL_TIME: None,
}


class _RangePredicate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min is None and self.max is None:
            raise ValueError(f"{self.kind} needs a min or a max")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"{self.kind}: min must not exceed max")
        return self

    def holds(self, value) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


class PurchaseCountPredicate(_RangePredicate):
    kind: Literal["purchase_count"] = "purchase_count"
    min: Optional[int] = Field(None, ge=0)
    max: Optional[int] = Field(None, ge=0)


class AverageOrderValuePredicate(_RangePredicate):
    kind: Literal["average_order_value"] = "average_order_value"
    min: Optional[Decimal] = Field(None, ge=0)
    max: Optional[Decimal] = Field(None, ge=0)


class TotalSpentPredicate(_RangePredicate):
    kind: Literal["total_spent"] = "total_spent"
    min: Optional[Decimal] = Field(None, ge=0)
    max: Optional[Decimal] = Field(None, ge=0)


class DaysSinceLastPurchasePredicate(_RangePredicate):
    kind: Literal["days_since_last_purchase"] = "days_since_last_purchase"
    min: Optional[int] = Field(None, ge=0)
    max: Optional[int] = Field(None, ge=0)


class VisitCountPredicate(_RangePredicate):
    kind: Literal["visit_count"] = "visit_count"
    min: Optional[int] = Field(None, ge=0)
    max: Optional[int] = Field(None, ge=0)


Predicate = Annotated[
    Union[
        PurchaseCountPredicate,
        AverageOrderValuePredicate,
        TotalSpentPredicate,
        DaysSinceLastPurchasePredicate,
        VisitCountPredicate,
    ],
    Field(discriminator="kind"),
]

LEGACY_KEYS = {
    "purchaseCount": "purchase_count",
    "averageOrderValue": "average_order_value",
    "totalSpent": "total_spent",
    "daysSinceLastPurchase": "days_since_last_purchase",
    "visitCount": "visit_count",
}


class SegmentCriteria(BaseModel):
    model_config = ConfigDict(extra="forbid")

    period: CriteriaPeriod = CriteriaPeriod.ALL_TIME
    predicates: List[Predicate] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalize_legacy(cls, data: Any):
        if not isinstance(data, dict) or "predicates" in data:
            return data
        normalized = {"predicates": []}
        for key, value in data.items():
            if key == "period":
                normalized["period"] = value
            elif key in LEGACY_KEYS:
                if not isinstance(value, dict):
                    raise ValueError(f"{key} must be an object with min and/or max")
                normalized["predicates"].append({"kind": LEGACY_KEYS[key], **value})
            else:
                raise ValueError(f"Unknown criteria key: {key}")
        return normalized


class SegmentBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None
    is_automatic: bool = False
    criteria: Optional[SegmentCriteria] = None


class SegmentCreate(SegmentBase):
    restaurant_id: Optional[int] = None


class SegmentUpdate(BaseModel):
    """All fields optional; criteria are re-validated against is_automatic"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    is_automatic: Optional[bool] = None
    criteria: Optional[SegmentCriteria] = None

    @field_validator("name", "is_automatic")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class SegmentResponse(SegmentBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    restaurant_id: int
    member_count: int
    last_refreshed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class SegmentRefreshResult(BaseModel):
    segment_id: int
    member_count: int
    added: int
    removed: int
    refreshed_at: datetime


class SegmentMembersUpdate(BaseModel):
    customer_ids: List[int] = Field(..., min_length=1)
