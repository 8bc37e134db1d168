# backend/modules/notifications/models/__init__.py

from .notification_models import (
    CustomerNotification,
    DeliveryStatus,
    NotificationLog,
    NotificationType,
    PushSubscription,
    TargetType,
)

__all__ = [
    "CustomerNotification",
    "DeliveryStatus",
    "NotificationLog",
    "NotificationType",
    "PushSubscription",
    "TargetType",
]
