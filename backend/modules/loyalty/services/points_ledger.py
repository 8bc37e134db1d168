# backend/modules/loyalty/services/points_ledger.py

"""
The points ledger is the only writer of ``Customer.points``.

``record`` appends a PointHistory row and moves the balance inside the
caller's database transaction; the caller commits or rolls back both
together. Callers mutating a balance should hold the customer row lock
(see :func:`lock_customer`).
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.error_handling import APIValidationError
from modules.customers.models.customer_models import Customer

from ..models.point_history_models import PointHistory, PointSource, PointType

logger = logging.getLogger(__name__)


def lock_customer(db: Session, customer_id: int) -> Optional[Customer]:
    """Load a customer with ``SELECT ... FOR UPDATE``"""
    return (
        db.query(Customer)
        .filter(Customer.id == customer_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


class PointsLedger:
    """Append-only point ledger coupled to the customer balance"""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        customer: Customer,
        amount: int,
        type: PointType,
        source: PointSource,
        description: Optional[str] = None,
        transaction_id: Optional[int] = None,
        created_by: Optional[int] = None,
    ) -> PointHistory:
        if type == PointType.EARNED and amount <= 0:
            raise ValueError("EARNED entries must be positive")
        if type != PointType.EARNED and amount >= 0:
            raise ValueError(f"{type.value} entries must be negative")

        current_balance = customer.points or 0
        new_balance = current_balance + amount
        if new_balance < 0:
            raise APIValidationError(
                "Insufficient points balance",
                [{
                    "field": "points",
                    "message": f"Balance is {current_balance}, requested {abs(amount)}",
                }],
            )

        entry = PointHistory(
            customer_id=customer.id,
            amount=amount,
            type=type,
            source=source,
            description=description,
            transaction_id=transaction_id,
            balance_after=new_balance,
            created_by=created_by,
        )
        customer.points = new_balance
        self.db.add(entry)

        logger.info(
            "Points %s for customer %s: %+d (balance %d -> %d)",
            type.value, customer.id, amount, current_balance, new_balance,
        )
        return entry

    def ledger_sum(self, customer_id: int) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(PointHistory.amount), 0))
            .filter(PointHistory.customer_id == customer_id)
            .scalar()
        )
        return int(total or 0)

    def lifetime_earned(self, customer_id: int) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(PointHistory.amount), 0))
            .filter(
                PointHistory.customer_id == customer_id,
                PointHistory.type == PointType.EARNED,
            )
            .scalar()
        )
        return int(total or 0)
