"""ORM models. Importing this package registers every table on Base.metadata."""

from .background_job import BackgroundJob
from .booking import (
    ACTIVE_BOOKING_STATUSES,
    ALLOWED_STATUS_TRANSITIONS,
    Booking,
    BookingItem,
    BookingStatus,
)
from .facility import Facility
from .inventory import InventoryHistory, InventoryItem

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "ALLOWED_STATUS_TRANSITIONS",
    "BackgroundJob",
    "Booking",
    "BookingItem",
    "BookingStatus",
    "Facility",
    "InventoryHistory",
    "InventoryItem",
]
