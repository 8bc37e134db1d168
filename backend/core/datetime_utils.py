# backend/core/datetime_utils.py
"""
Timestamps are stored as naive UTC (``DateTime`` columns, ``datetime.utcnow``).

Clients may send ISO timestamps with an offset (``Z``, ``+03:00``); those are
converted to naive UTC as they enter the API so every comparison in the
services is between naive values.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# Request field type: accepts naive or offset-aware input, yields naive UTC
UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]
