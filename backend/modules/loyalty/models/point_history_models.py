# backend/modules/loyalty/models/point_history_models.py

"""
Point history ledger.

Every change to ``Customer.points`` is recorded here as a signed delta with
the resulting balance. Rows are append-only: the ORM refuses to update or
delete them once flushed.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import (Column, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer,
                        String, event)
from sqlalchemy.orm import relationship

from core.database import Base


class PointType(str, Enum):
    EARNED = "EARNED"
    SPENT = "SPENT"
    EXPIRED = "EXPIRED"


class PointSource(str, Enum):
    PURCHASE = "PURCHASE"
    REWARD = "REWARD"
    BONUS = "BONUS"
    MANUAL = "MANUAL"
    CAMPAIGN = "CAMPAIGN"


class ImmutableLedgerError(Exception):
    """Raised when code tries to rewrite or remove a ledger row"""


class PointHistory(Base):
    """One signed balance change for a customer"""
    __tablename__ = "point_history"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # positive for EARNED, negative otherwise
    type = Column(SQLEnum(PointType), nullable=False, index=True)
    source = Column(SQLEnum(PointSource), nullable=False, index=True)
    description = Column(String(255), nullable=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True, index=True)
    balance_after = Column(Integer, nullable=False)
    created_by = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    customer = relationship("Customer", back_populates="point_history")
    transaction = relationship("Transaction")

    __table_args__ = (
        Index("ix_point_history_customer_created", "customer_id", "created_at"),
    )

    def __repr__(self):
        return f"<PointHistory(customer={self.customer_id}, {self.type}: {self.amount})>"


@event.listens_for(PointHistory, "before_update")
def _reject_update(mapper, connection, target):
    raise ImmutableLedgerError(f"PointHistory {target.id} is append-only")


@event.listens_for(PointHistory, "before_delete")
def _reject_delete(mapper, connection, target):
    raise ImmutableLedgerError(f"PointHistory {target.id} cannot be deleted")
