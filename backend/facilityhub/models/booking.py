# backend/facilityhub/models/booking.py
"""
Booking model for the FacilityHub booking core.

A booking reserves exactly one facility for the half-open window
[start_date, end_date) and may claim inventory items for that window.
Only pending/confirmed, non-deleted bookings are "active": they block the
facility window and hold their inventory claims.
"""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any, Dict, List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)

# pending -> confirmed -> completed, cancelled from pending or confirmed
ALLOWED_STATUS_TRANSITIONS: Dict[str, frozenset] = {
    BookingStatus.PENDING.value: frozenset(
        {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value}
    ),
    BookingStatus.CONFIRMED.value: frozenset(
        {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value}
    ),
    BookingStatus.COMPLETED.value: frozenset(),
    BookingStatus.CANCELLED.value: frozenset(),
}


class Booking(Base):
    """Reservation of a facility for [start_date, end_date)."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)

    facility_id = Column(String(26), ForeignKey("facilities.id"), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    notes = Column(Text, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    # Cancellation tracking
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(64), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    facility = relationship("Facility", back_populates="bookings")
    items = relationship(
        "BookingItem",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingItem.position",
    )

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_bookings_interval_order"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        Index("ix_bookings_facility_window", "facility_id", "start_date", "end_date"),
        Index("ix_bookings_user_start", "user_id", "start_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: facility={self.facility_id}, user={self.user_id}, "
            f"window={self.start_date}-{self.end_date}, status={self.status}>"
        )

    @property
    def is_active(self) -> bool:
        """Whether this booking blocks its window and holds inventory."""
        return not self.is_deleted and self.status in ACTIVE_BOOKING_STATUSES

    def cancel(self, cancelled_by: str | None = None, reason: str | None = None) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = _utcnow()
        self.cancelled_by = cancelled_by
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by {cancelled_by or 'system'}")

    def to_dict(self) -> Dict[str, Any]:
        """Serializable snapshot of the booking, used in event payloads."""
        return {
            "id": self.id,
            "facility_id": self.facility_id,
            "user_id": self.user_id,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": self.status,
            "notes": self.notes,
            "is_deleted": bool(self.is_deleted),
            "items": self.claims(),
        }

    def claims(self) -> List[Dict[str, Any]]:
        return [
            {"inventory_item_id": item.inventory_item_id, "quantity": item.quantity}
            for item in self.items
        ]


class BookingItem(Base):
    """An inventory claim attached to a booking."""

    __tablename__ = "booking_items"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id = Column(
        String(26), ForeignKey("inventory_items.id"), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    booking = relationship("Booking", back_populates="items")

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_booking_items_quantity"),)

    def __repr__(self) -> str:
        return f"<BookingItem {self.inventory_item_id} x{self.quantity}>"
