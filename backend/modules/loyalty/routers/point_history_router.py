# backend/modules/loyalty/routers/point_history_router.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db
from core.datetime_utils import to_naive_utc
from core.pagination import Page, PaginationParams

from ..models.point_history_models import PointSource, PointType
from ..schemas.point_schemas import (
    BalanceAudit,
    ExpirePointsRequest,
    ExpirePointsResult,
    PointAdjustment,
    PointHistoryResponse,
    PointHistoryWithCustomer,
    PointStats,
)
from ..services.loyalty_service import LoyaltyService

router = APIRouter(prefix="/api/v1/points", tags=["Loyalty Points"])


@router.get("/history", response_model=Page[PointHistoryWithCustomer])
def list_point_history(
    restaurant_id: Optional[int] = Query(None),
    customer_id: Optional[int] = Query(None),
    type: Optional[PointType] = Query(None),
    source: Optional[PointSource] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return LoyaltyService(db, context).list_history(
        pagination, restaurant_id, customer_id, type, source, to_naive_utc(date_from), to_naive_utc(date_to)
    )


@router.get("/stats", response_model=PointStats)
def get_point_stats(
    restaurant_id: Optional[int] = Query(None),
    customer_id: Optional[int] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Totals earned, spent and expired, and the resulting net balance."""
    return LoyaltyService(db, context).get_stats(
        restaurant_id, customer_id, to_naive_utc(date_from), to_naive_utc(date_to)
    )


@router.post("/expire", response_model=ExpirePointsResult)
def expire_inactive_points(
    data: ExpirePointsRequest,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return LoyaltyService(db, context).expire_inactive_points(data)


@router.get("/customers/{customer_id}", response_model=Page[PointHistoryResponse])
def get_customer_point_history(
    customer_id: int,
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return LoyaltyService(db, context).customer_history(customer_id, pagination)


@router.post(
    "/customers/{customer_id}/adjust",
    response_model=PointHistoryResponse,
    status_code=status.HTTP_201_CREATED,
)
def adjust_customer_points(
    customer_id: int,
    adjustment: PointAdjustment,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return LoyaltyService(db, context).adjust_points(customer_id, adjustment)


@router.get("/customers/{customer_id}/audit", response_model=BalanceAudit)
def audit_customer_balance(
    customer_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Compare the stored balance with the sum of the ledger."""
    return LoyaltyService(db, context).verify_customer_balance(customer_id)
