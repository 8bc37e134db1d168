# backend/modules/loyalty/models/__init__.py

from .point_history_models import (
    ImmutableLedgerError,
    PointHistory,
    PointSource,
    PointType,
)

__all__ = [
    "ImmutableLedgerError",
    "PointHistory",
    "PointSource",
    "PointType",
]
