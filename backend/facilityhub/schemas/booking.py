# backend/facilityhub/schemas/booking.py
"""
Booking schemas for FacilityHub.

Window order (start before end) is a domain rule checked by the services,
so it surfaces as INVALID_INTERVAL rather than a schema error.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_NOTES_LENGTH, MAX_REASON_LENGTH
from ..core.intervals import ensure_utc
from ..models.booking import BookingStatus
from ._strict_base import StandardizedModel, StrictModel, StrictRequestModel


def _utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
    return ensure_utc(value) if isinstance(value, datetime) else value


class BookingItemIn(StrictRequestModel):
    """Inventory claim requested with a booking."""

    inventory_item_id: str = Field(..., max_length=26, description="Inventory item to claim")
    quantity: int = Field(..., description="Units to hold for the booking window")


class BookingCreate(StrictRequestModel):
    """Reserve a facility for [start_date, end_date)."""

    facility_id: str = Field(..., min_length=1, max_length=26, description="Facility to book")
    start_date: datetime = Field(..., description="Window start (inclusive)")
    end_date: datetime = Field(..., description="Window end (exclusive)")
    items: List[BookingItemIn] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class BookingUpdate(StrictRequestModel):
    """
    Partial update of a booking.

    Fields left out keep their current value; ``items`` replaces the whole
    claim list when given.
    """

    facility_id: Optional[str] = Field(None, min_length=1, max_length=26)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    items: Optional[List[BookingItemIn]] = None
    status: Optional[BookingStatus] = None
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _utc_or_none(v)


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class BookingItemResponse(StandardizedModel):
    inventory_item_id: str
    quantity: int


class BookingResponse(StandardizedModel):
    """Booking as returned by the API."""

    id: str
    facility_id: str
    user_id: str
    start_date: datetime
    end_date: datetime
    status: str
    notes: Optional[str] = None
    is_deleted: bool = False
    items: List[BookingItemResponse] = Field(default_factory=list)
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_date", "end_date", "cancelled_at", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive values
        return _utc_or_none(v)


class AvailabilityCheckRequest(StrictRequestModel):
    facility_id: str = Field(..., min_length=1, max_length=26)
    start_date: datetime
    end_date: datetime
    exclude_booking_id: Optional[str] = None


class AvailabilityCheckResponse(StrictModel):
    """Response for availability check."""

    available: bool
    conflicts_with: Optional[List[Dict[str, Any]]] = None


class SuggestedDatesRequest(StrictRequestModel):
    facility_id: str = Field(..., min_length=1, max_length=26)
    start_date: datetime = Field(..., description="Start of the rejected window")
    end_date: datetime = Field(..., description="End of the rejected window")
    exclude_booking_id: Optional[str] = None


class SuggestedDateResponse(StrictModel):
    start_date: datetime
    end_date: datetime
    duration_days: int


class SuggestedDatesResponse(StrictModel):
    suggested_dates: List[SuggestedDateResponse]
