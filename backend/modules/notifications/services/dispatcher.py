# backend/modules/notifications/services/dispatcher.py

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence
import logging

from sqlalchemy.orm import Session

from ..models.notification_models import (
    CustomerNotification,
    DeliveryStatus,
    NotificationType,
    PushSubscription,
)

logger = logging.getLogger(__name__)

NO_SUBSCRIPTION = "no active push subscription"


@dataclass
class NotificationPayload:
    """Standard notification message structure"""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    data: Optional[Dict[str, Any]] = None


@dataclass
class DeliveryResult:
    sent_count: int = 0
    failed_count: int = 0


class NotificationDispatcher(ABC):
    """
    Delivery channel for customer notifications.

    Implement this interface to add real push delivery; the counts are
    reported back to the caller and stored on the notification log.
    """

    @abstractmethod
    def dispatch(
        self,
        payload: NotificationPayload,
        customer_ids: Sequence[int],
        log_id: Optional[int] = None,
    ) -> DeliveryResult:
        pass


class InboxDispatcher(NotificationDispatcher):
    """
    Default dispatcher: writes one inbox row per customer.

    A customer with an active push subscription counts as sent; anyone else
    gets a FAILED row so the admin sees who could not be reached.
    Runs inside the caller's transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def dispatch(
        self,
        payload: NotificationPayload,
        customer_ids: Sequence[int],
        log_id: Optional[int] = None,
    ) -> DeliveryResult:
        if not customer_ids:
            return DeliveryResult()

        subscribed = {
            row.customer_id
            for row in self.db.query(PushSubscription.customer_id)
            .filter(
                PushSubscription.customer_id.in_(customer_ids),
                PushSubscription.is_active.is_(True),
            )
            .distinct()
        }

        result = DeliveryResult()
        for customer_id in customer_ids:
            reachable = customer_id in subscribed
            self.db.add(
                CustomerNotification(
                    customer_id=customer_id,
                    log_id=log_id,
                    title=payload.title,
                    message=payload.message,
                    type=payload.type,
                    status=DeliveryStatus.SENT if reachable else DeliveryStatus.FAILED,
                    failure_reason=None if reachable else NO_SUBSCRIPTION,
                    data=payload.data,
                )
            )
            if reachable:
                result.sent_count += 1
            else:
                result.failed_count += 1

        logger.info(
            "Dispatched '%s' to %d customers (%d sent, %d failed)",
            payload.title, len(customer_ids), result.sent_count, result.failed_count,
        )
        return result
