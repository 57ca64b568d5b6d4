"""Facility model: the bookable resource a booking reserves."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Facility(Base):
    __tablename__ = "facilities"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    bookings = relationship("Booking", back_populates="facility")
    inventory_items = relationship("InventoryItem", back_populates="facility")

    def __repr__(self) -> str:
        return f"<Facility {self.id}: {self.name}>"
