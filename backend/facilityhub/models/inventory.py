"""
Inventory models.

InventoryItem.quantity is the count not committed to any active booking.
Every change to it is recorded in InventoryHistory.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    facility_id = Column(String(26), ForeignKey("facilities.id"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    facility = relationship("Facility", back_populates="inventory_items")
    history = relationship(
        "InventoryHistory",
        back_populates="item",
        order_by="InventoryHistory.created_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity"),)

    def __repr__(self) -> str:
        return f"<InventoryItem {self.id}: {self.name} qty={self.quantity}>"


class InventoryHistory(Base):
    """Append-only ledger of quantity changes."""

    __tablename__ = "inventory_history"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    item_id = Column(
        String(26), ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    change = Column(Integer, nullable=False)
    reason = Column(String(50), nullable=False)
    booking_id = Column(String(26), nullable=True, index=True)
    user_id = Column(String(64), nullable=True)
    condition = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    item = relationship("InventoryItem", back_populates="history")
