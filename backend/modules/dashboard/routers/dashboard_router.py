# backend/modules/dashboard/routers/dashboard_router.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db

from ..schemas.dashboard_schemas import DashboardStats
from ..services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    restaurant_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Customer, campaign, segment and revenue figures for the current month."""
    return DashboardService(db, context).get_stats(restaurant_id)
