"""Booking domain events."""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class BookingCreated:
    """Fired after a booking is successfully created."""

    booking_id: str
    facility_id: str
    user_id: str
    created_at: datetime
    record: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingUpdated:
    """Fired after a booking's window, facility, items or status changed."""

    booking_id: str
    updated_fields: list
    updated_at: datetime
    record: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a booking is cancelled."""

    booking_id: str
    cancelled_at: datetime
    cancelled_by: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingDeleted:
    """Fired after a booking is soft deleted."""

    booking_id: str
    deleted_at: datetime
    released_items: list = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
