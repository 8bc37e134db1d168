# backend/modules/customers/routers/customer_router.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db
from core.pagination import Page, PaginationParams

from ..models.customer_models import CustomerLevel
from ..schemas.customer_schemas import (
    CustomerCreate,
    CustomerDetail,
    CustomerFilters,
    CustomerResponse,
    CustomerUpdate,
    TierRecalculation,
)
from ..services.customer_service import CustomerService
from ..services.tier_service import TierService

router = APIRouter(prefix="/api/v1/customers", tags=["Customers"])


@router.get("/", response_model=Page[CustomerResponse])
def list_customers(
    restaurant_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Search in name, email, phone"),
    level: Optional[CustomerLevel] = Query(None),
    segment_id: Optional[int] = Query(None),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    filters = CustomerFilters(
        search=search, level=level, segment_id=segment_id, restaurant_id=restaurant_id
    )
    return CustomerService(db, context).list_customers(filters, pagination)


@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return CustomerService(db, context).create_customer(data)


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Customer with tier, recent activity, segments, campaigns and statistics."""
    return CustomerService(db, context).get_customer_detail(customer_id)


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return CustomerService(db, context).update_customer(customer_id, data)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    CustomerService(db, context).delete_customer(customer_id)


@router.post("/{customer_id}/recalculate-tier", response_model=TierRecalculation)
def recalculate_customer_tier(
    customer_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return TierService(db, context).recalculate_customer(customer_id)
