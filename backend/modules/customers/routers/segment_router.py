# backend/modules/customers/routers/segment_router.py
"""API endpoints for managing customer segments."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db

from ..schemas.customer_schemas import CustomerResponse
from ..schemas.segment_schemas import (
    SegmentCreate,
    SegmentMembersUpdate,
    SegmentRefreshResult,
    SegmentResponse,
    SegmentUpdate,
)
from ..services.segment_service import SegmentService

router = APIRouter(prefix="/api/v1/segments", tags=["Customer Segments"])


# ---------------------------------------------------------------------------
# CRUD endpoints
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[SegmentResponse])
def list_segments(
    restaurant_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Return all segments of the restaurant with their member counts."""
    return SegmentService(db, context).list_segments(restaurant_id)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SegmentResponse)
def create_segment(
    segment: SegmentCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Create a new customer segment and evaluate its membership."""
    return SegmentService(db, context).create_segment(segment)


@router.get("/{segment_id}", response_model=SegmentResponse)
def get_segment(
    segment_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return SegmentService(db, context).get_segment(segment_id)


@router.put("/{segment_id}", response_model=SegmentResponse)
def update_segment(
    segment_id: int,
    segment_update: SegmentUpdate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Update a segment; automatic segments are re-evaluated afterwards."""
    return SegmentService(db, context).update_segment(segment_id, segment_update)


@router.delete("/{segment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_segment(
    segment_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    SegmentService(db, context).delete_segment(segment_id)


# ---------------------------------------------------------------------------
# Membership helpers
# ---------------------------------------------------------------------------


@router.post("/{segment_id}/refresh", response_model=SegmentRefreshResult)
def refresh_segment(
    segment_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Force re-evaluation of segment membership."""
    return SegmentService(db, context).refresh_segment(segment_id)


@router.get("/{segment_id}/customers", response_model=List[CustomerResponse])
def get_segment_customers(
    segment_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return SegmentService(db, context).get_members(segment_id)


@router.post("/{segment_id}/customers", response_model=SegmentResponse)
def add_segment_customers(
    segment_id: int,
    data: SegmentMembersUpdate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return SegmentService(db, context).add_members(segment_id, data.customer_ids)


@router.delete("/{segment_id}/customers", response_model=SegmentResponse)
def remove_segment_customers(
    segment_id: int,
    data: SegmentMembersUpdate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return SegmentService(db, context).remove_members(segment_id, data.customer_ids)
