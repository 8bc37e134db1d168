# backend/app/models/__init__.py

"""Import every model module so the SQLAlchemy mappers are configured together."""

from modules.auth.models import AdminUser
from modules.campaigns.models import Campaign, CampaignUsage
from modules.customers.models import Customer, LoyaltyTier, Segment
from modules.loyalty.models import PointHistory
from modules.notifications.models import CustomerNotification, NotificationLog, PushSubscription
from modules.products.models import Product
from modules.restaurants.models import Restaurant
from modules.transactions.models import AppliedCampaign, Transaction, TransactionItem

__all__ = [
    "AdminUser",
    "AppliedCampaign",
    "Campaign",
    "CampaignUsage",
    "Customer",
    "CustomerNotification",
    "LoyaltyTier",
    "NotificationLog",
    "PointHistory",
    "Product",
    "PushSubscription",
    "Restaurant",
    "Segment",
    "Transaction",
    "TransactionItem",
]
