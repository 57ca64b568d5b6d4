"""Inventory schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_NOTES_LENGTH
from ._strict_base import StandardizedModel, StrictRequestModel


class InventoryItemCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(0, ge=0, description="Initial stock")
    facility_id: Optional[str] = Field(None, max_length=26)

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Item name cannot be empty")
        return v


class InventoryReturnRequest(StrictRequestModel):
    """Stock coming back into circulation."""

    quantity: int = Field(..., gt=0)
    condition: Optional[str] = Field(None, max_length=20, description="e.g. good, damaged")
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class InventoryItemResponse(StandardizedModel):
    id: str
    name: str
    facility_id: Optional[str] = None
    quantity: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InventoryItemDetailResponse(InventoryItemResponse):
    committed_quantity: int = Field(0, description="Units held by active bookings")


class InventoryHistoryResponse(StandardizedModel):
    id: str
    item_id: str
    change: int
    reason: str
    booking_id: Optional[str] = None
    user_id: Optional[str] = None
    condition: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
