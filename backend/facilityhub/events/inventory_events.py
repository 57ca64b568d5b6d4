"""Inventory domain events."""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class InventoryLowStock:
    """Fired when a booking leaves an item below the low-stock threshold."""

    item_id: str
    quantity: int
    threshold: int
    booking_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
