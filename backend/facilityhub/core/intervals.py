"""
Half-open interval helpers for booking windows.

A booking occupies ``[start, end)``: the end instant is free again, so
back-to-back bookings never collide.
"""

from datetime import datetime, timedelta, timezone
import math
from typing import Optional

from .exceptions import InvalidIntervalException

ONE_DAY = timedelta(days=1)


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """True iff [a_start, a_end) and [b_start, b_end) share at least one instant."""
    return a_start < b_end and b_start < a_end


def validate_interval(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is None or end is None or not start < end:
        raise InvalidIntervalException(start, end)


def duration_in_days(start: datetime, end: datetime) -> int:
    """Length of the window in whole days, rounded up."""
    return math.ceil((end - start) / ONE_DAY)
