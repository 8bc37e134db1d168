# backend/modules/notifications/services/notification_service.py

"""
Customer notifications: targeting, sending through a dispatcher, the
per-customer inbox and push subscription registration.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.error_handling import APIError, APIValidationError, NotFoundError
from core.pagination import PaginationParams
from modules.customers.models.customer_models import (
    Customer,
    CustomerLevel,
    Segment,
    customer_segments,
)

from ..models.notification_models import (
    CustomerNotification,
    DeliveryStatus,
    NotificationLog,
    NotificationType,
    PushSubscription,
    TargetType,
)
from ..schemas.notification_schemas import NotificationSend, PushSubscriptionCreate
from .dispatcher import InboxDispatcher, NotificationDispatcher, NotificationPayload

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(
        self,
        db: Session,
        context: RequestContext,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        self.db = db
        self.context = context
        self.dispatcher = dispatcher or InboxDispatcher(db)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send(self, data: NotificationSend) -> NotificationLog:
        restaurant_id = self.context.resolve_restaurant_id(data.restaurant_id)
        self._validate_target(data)
        try:
            customer_ids = self.resolve_target_customers(
                restaurant_id,
                data.target_type,
                segment_ids=data.segment_ids,
                tier_levels=data.tier_levels,
                customer_ids=data.customer_ids,
            )
            log = self.dispatch(
                restaurant_id,
                NotificationPayload(data.title, data.message, data.type, data.data),
                data.target_type,
                customer_ids,
                target_filters=self._target_filters(data),
            )
            self.db.commit()
        except APIError:
            self.db.rollback()
            raise
        self.db.refresh(log)
        return log

    def dispatch(
        self,
        restaurant_id: int,
        payload: NotificationPayload,
        target_type: TargetType,
        customer_ids: Sequence[int],
        target_filters: Optional[dict] = None,
        campaign_id: Optional[int] = None,
    ) -> NotificationLog:
        """Log and deliver a notification; the caller commits"""
        log = NotificationLog(
            restaurant_id=restaurant_id,
            title=payload.title,
            message=payload.message,
            type=payload.type,
            target_type=target_type,
            target_filters=target_filters,
            target_customer_ids=list(customer_ids),
            campaign_id=campaign_id,
            created_by=self.context.user_id,
        )
        self.db.add(log)
        self.db.flush()

        result = self.dispatcher.dispatch(payload, customer_ids, log_id=log.id)
        log.sent_count = result.sent_count
        log.failed_count = result.failed_count

        logger.info(
            "Notification %s for restaurant %s: %d sent, %d failed",
            log.id, restaurant_id, result.sent_count, result.failed_count,
        )
        return log

    def notify_campaign(self, campaign) -> NotificationLog:
        """Announce a new campaign to its segments, or to everyone when unrestricted"""
        segment_ids = [segment.id for segment in campaign.segments]
        target_type = TargetType.SEGMENT if segment_ids else TargetType.ALL
        customer_ids = self.resolve_target_customers(
            campaign.restaurant_id, target_type, segment_ids=segment_ids
        )
        payload = NotificationPayload(
            title=campaign.notification_title or campaign.name,
            message=campaign.notification_message or campaign.description,
            type=NotificationType.CAMPAIGN,
            data={"campaign_id": campaign.id},
        )
        return self.dispatch(
            campaign.restaurant_id,
            payload,
            target_type,
            customer_ids,
            target_filters={"segment_ids": segment_ids} if segment_ids else None,
            campaign_id=campaign.id,
        )

    def resolve_target_customers(
        self,
        restaurant_id: int,
        target_type: TargetType,
        segment_ids: Sequence[int] = (),
        tier_levels: Sequence[CustomerLevel] = (),
        customer_ids: Sequence[int] = (),
    ) -> List[int]:
        query = self.db.query(Customer.id).filter(Customer.restaurant_id == restaurant_id)

        if target_type == TargetType.SEGMENT:
            query = (
                query.join(customer_segments, customer_segments.c.customer_id == Customer.id)
                .join(Segment, Segment.id == customer_segments.c.segment_id)
                .filter(Segment.id.in_(segment_ids), Segment.restaurant_id == restaurant_id)
            )
        elif target_type == TargetType.TIER:
            query = query.filter(Customer.level.in_(tier_levels))
        elif target_type == TargetType.CUSTOM:
            query = query.filter(Customer.id.in_(customer_ids))

        return [row.id for row in query.distinct().order_by(Customer.id)]

    def _validate_target(self, data: NotificationSend) -> None:
        required = {
            TargetType.SEGMENT: ("segment_ids", data.segment_ids),
            TargetType.TIER: ("tier_levels", data.tier_levels),
            TargetType.CUSTOM: ("customer_ids", data.customer_ids),
        }
        if data.target_type in required:
            field, value = required[data.target_type]
            if not value:
                raise APIValidationError.for_field(
                    field, f"{field} is required for target type '{data.target_type.value}'"
                )

    @staticmethod
    def _target_filters(data: NotificationSend) -> Optional[dict]:
        if data.target_type == TargetType.SEGMENT:
            return {"segment_ids": data.segment_ids}
        if data.target_type == TargetType.TIER:
            return {"tier_levels": [level.value for level in data.tier_levels]}
        if data.target_type == TargetType.CUSTOM:
            return {"customer_ids": data.customer_ids}
        return None

    # ------------------------------------------------------------------
    # Admin views
    # ------------------------------------------------------------------

    def list_logs(self, pagination: PaginationParams, restaurant_id: Optional[int] = None) -> dict:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        query = (
            self.db.query(NotificationLog)
            .filter(NotificationLog.restaurant_id == restaurant_id)
            .order_by(NotificationLog.created_at.desc(), NotificationLog.id.desc())
        )
        items, total = pagination.paginate_query(query)
        return pagination.page_of(items, total)

    def push_enabled_customers(self, restaurant_id: Optional[int] = None) -> List[dict]:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        rows = (
            self.db.query(Customer, func.count(PushSubscription.id).label("subscription_count"))
            .join(PushSubscription, PushSubscription.customer_id == Customer.id)
            .filter(
                Customer.restaurant_id == restaurant_id,
                PushSubscription.is_active.is_(True),
            )
            .group_by(Customer.id)
            .order_by(Customer.name)
            .all()
        )
        return [
            {
                "id": customer.id,
                "name": customer.name,
                "email": customer.email,
                "level": customer.level,
                "subscription_count": count,
            }
            for customer, count in rows
        ]

    # ------------------------------------------------------------------
    # Customer side
    # ------------------------------------------------------------------

    def _get_customer(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer or not self.context.can_access_restaurant(customer.restaurant_id):
            raise NotFoundError("Customer", customer_id)
        return customer

    def register_subscription(self, customer_id: int, data: PushSubscriptionCreate) -> PushSubscription:
        """Create or reactivate the customer's subscription for this endpoint"""
        customer = self._get_customer(customer_id)
        subscription = (
            self.db.query(PushSubscription)
            .filter(
                PushSubscription.customer_id == customer.id,
                PushSubscription.endpoint == data.endpoint,
            )
            .first()
        )
        if subscription is None:
            subscription = PushSubscription(customer_id=customer.id, endpoint=data.endpoint)
            self.db.add(subscription)

        subscription.p256dh = data.keys.p256dh if data.keys else None
        subscription.auth = data.keys.auth if data.keys else None
        subscription.user_agent = data.user_agent
        subscription.is_active = True
        self.db.commit()
        self.db.refresh(subscription)
        logger.info("Registered push subscription %s for customer %s", subscription.id, customer.id)
        return subscription

    def unregister_subscription(self, customer_id: int, subscription_id: int) -> None:
        customer = self._get_customer(customer_id)
        subscription = self.db.get(PushSubscription, subscription_id)
        if not subscription or subscription.customer_id != customer.id:
            raise NotFoundError("PushSubscription", subscription_id)
        subscription.is_active = False
        self.db.commit()

    def customer_history(self, customer_id: int, pagination: PaginationParams) -> dict:
        customer = self._get_customer(customer_id)
        query = (
            self.db.query(CustomerNotification)
            .filter(CustomerNotification.customer_id == customer.id)
            .order_by(CustomerNotification.sent_at.desc(), CustomerNotification.id.desc())
        )
        items, total = pagination.paginate_query(query)
        return pagination.page_of(items, total)

    def mark_read(self, customer_id: int, notification_id: int) -> CustomerNotification:
        customer = self._get_customer(customer_id)
        notification = self.db.get(CustomerNotification, notification_id)
        if not notification or notification.customer_id != customer.id:
            raise NotFoundError("CustomerNotification", notification_id)
        if notification.status != DeliveryStatus.READ:
            notification.status = DeliveryStatus.READ
            notification.read_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(notification)
        return notification
