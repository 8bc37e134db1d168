# backend/modules/notifications/routers/notification_router.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db
from core.pagination import Page, PaginationParams

from ..schemas.notification_schemas import (
    NotificationLogResponse,
    NotificationSend,
    PushEnabledCustomer,
)
from ..services.notification_service import NotificationService

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.post("/send", response_model=NotificationLogResponse, status_code=status.HTTP_201_CREATED)
def send_notification(
    data: NotificationSend,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Send a notification to all customers, segments, tiers or a custom list."""
    return NotificationService(db, context).send(data)


@router.get("/logs", response_model=Page[NotificationLogResponse])
def list_notification_logs(
    restaurant_id: Optional[int] = Query(None),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return NotificationService(db, context).list_logs(pagination, restaurant_id)


@router.get("/push-enabled", response_model=List[PushEnabledCustomer])
def list_push_enabled_customers(
    restaurant_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return NotificationService(db, context).push_enabled_customers(restaurant_id)
