# backend/modules/transactions/models/__init__.py

from .transaction_models import (
    AppliedCampaign,
    PaymentMethod,
    Transaction,
    TransactionItem,
    TransactionStatus,
)

__all__ = [
    "AppliedCampaign",
    "PaymentMethod",
    "Transaction",
    "TransactionItem",
    "TransactionStatus",
]
