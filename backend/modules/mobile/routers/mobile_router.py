# backend/modules/mobile/routers/mobile_router.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import get_request_context
from core.auth_context import RequestContext
from core.database import get_db
from core.pagination import Page, PaginationParams
from modules.notifications.schemas.notification_schemas import (
    CustomerNotificationResponse,
    PushSubscriptionCreate,
    PushSubscriptionResponse,
)
from modules.notifications.services.notification_service import NotificationService

from ..schemas.mobile_schemas import MobileDashboard
from ..services.mobile_service import MobileService

router = APIRouter(prefix="/api/v1/mobile", tags=["Mobile"])


@router.get("/customers/{customer_id}/dashboard", response_model=MobileDashboard)
def get_customer_dashboard(
    customer_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Loyalty card: points, tier progress, campaigns and stamp cards."""
    return MobileService(db, context).get_dashboard(customer_id)


@router.get(
    "/customers/{customer_id}/notifications",
    response_model=Page[CustomerNotificationResponse],
)
def get_customer_notifications(
    customer_id: int,
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    return NotificationService(db, context).customer_history(customer_id, pagination)


@router.post(
    "/customers/{customer_id}/notifications/{notification_id}/read",
    response_model=CustomerNotificationResponse,
)
def mark_notification_read(
    customer_id: int,
    notification_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    return NotificationService(db, context).mark_read(customer_id, notification_id)


@router.post(
    "/customers/{customer_id}/push-subscriptions",
    response_model=PushSubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_push_subscription(
    customer_id: int,
    data: PushSubscriptionCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    return NotificationService(db, context).register_subscription(customer_id, data)


@router.delete(
    "/customers/{customer_id}/push-subscriptions/{subscription_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def unregister_push_subscription(
    customer_id: int,
    subscription_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    NotificationService(db, context).unregister_subscription(customer_id, subscription_id)
