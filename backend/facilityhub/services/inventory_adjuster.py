# backend/facilityhub/services/inventory_adjuster.py
"""
Inventory Adjuster for FacilityHub

Applies booking inventory claims to item quantities. Each change is one
conditional UPDATE, so a decrement that would take an item below zero
changes nothing. The adjuster never commits: it runs inside the caller's
transaction and a failure on any entry rolls back the whole list.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import HISTORY_REASON_BOOKING_RELEASE, HISTORY_REASON_BOOKING_RESERVE
from ..core.exceptions import (
    InsufficientInventoryException,
    InventoryItemNotFoundException,
    ValidationException,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.inventory_repository import InventoryRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class AdjustmentDirection(str, Enum):
    DECREMENT = "decrement"
    INCREMENT = "increment"


@dataclass(frozen=True)
class ItemClaim:
    """Quantity of one inventory item held by a booking."""

    inventory_item_id: str
    quantity: int

    @classmethod
    def from_any(cls, value: Any) -> "ItemClaim":
        """Accept an ItemClaim, a dict, or any object with the claim attributes."""
        if isinstance(value, ItemClaim):
            return value
        if isinstance(value, dict):
            return cls(
                inventory_item_id=value.get("inventory_item_id") or "",
                quantity=int(value.get("quantity") or 0),
            )
        return cls(
            inventory_item_id=getattr(value, "inventory_item_id", "") or "",
            quantity=int(getattr(value, "quantity", 0) or 0),
        )


@dataclass
class AdjustmentResult:
    """Quantities after an adjustment, and which items were drawn down."""

    quantities: Dict[str, int] = field(default_factory=dict)
    decremented: List[str] = field(default_factory=list)


def to_claims(items: Optional[Iterable[Any]]) -> List[ItemClaim]:
    return [ItemClaim.from_any(item) for item in items or []]


def _aggregate(claims: Iterable[ItemClaim]) -> "OrderedDict[str, int]":
    totals: "OrderedDict[str, int]" = OrderedDict()
    for claim in claims:
        if claim.quantity < 0:
            raise ValidationException(
                "Item quantity cannot be negative",
                code="NEGATIVE_QUANTITY",
                details={
                    "inventory_item_id": claim.inventory_item_id,
                    "quantity": claim.quantity,
                },
            )
        if not claim.inventory_item_id or claim.quantity == 0:
            continue
        totals[claim.inventory_item_id] = totals.get(claim.inventory_item_id, 0) + claim.quantity
    return totals


class InventoryAdjuster(BaseService):
    """Moves item quantities in and out of booking claims."""

    def __init__(self, db: Session, repository: Optional[InventoryRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_inventory_repository(db)

    @BaseService.measure_operation("adjust_inventory")
    def adjust(
        self,
        items: Optional[Iterable[Any]],
        direction: AdjustmentDirection,
        *,
        booking_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> AdjustmentResult:
        """
        Apply every claim in list order in one direction.

        Entries without an item id or with quantity 0 are skipped.

        Returns:
            Resulting quantity per touched item and the items drawn down

        Raises:
            ValidationException: an entry has a negative quantity
            InsufficientInventoryException: a decrement exceeds the stock
            InventoryItemNotFoundException: an item is missing or deleted
        """
        claims = to_claims(items)
        _aggregate(claims)  # reject negative quantities before touching any row

        result = AdjustmentResult()
        for claim in claims:
            if not claim.inventory_item_id or claim.quantity == 0:
                continue
            result.quantities[claim.inventory_item_id] = self._apply(
                claim.inventory_item_id,
                claim.quantity,
                direction,
                booking_id=booking_id,
                user_id=user_id,
            )
            if direction == AdjustmentDirection.DECREMENT:
                result.decremented.append(claim.inventory_item_id)
        return result

    @BaseService.measure_operation("apply_net_change")
    def apply_net_change(
        self,
        old_items: Optional[Iterable[Any]],
        new_items: Optional[Iterable[Any]],
        *,
        booking_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> AdjustmentResult:
        """
        Move from the ``old_items`` claims to the ``new_items`` claims.

        One adjustment per item for the difference between the new and old
        claim. Releases run before reservations so stock freed by this booking
        can be claimed again by it.
        """
        old_totals = _aggregate(to_claims(old_items))
        new_totals = _aggregate(to_claims(new_items))

        deltas: "OrderedDict[str, int]" = OrderedDict()
        for item_id in list(old_totals) + list(new_totals):
            if item_id not in deltas:
                deltas[item_id] = new_totals.get(item_id, 0) - old_totals.get(item_id, 0)

        result = AdjustmentResult()
        for item_id, delta in deltas.items():
            if delta < 0:
                result.quantities[item_id] = self._apply(
                    item_id,
                    -delta,
                    AdjustmentDirection.INCREMENT,
                    booking_id=booking_id,
                    user_id=user_id,
                )
        for item_id, delta in deltas.items():
            if delta > 0:
                result.quantities[item_id] = self._apply(
                    item_id,
                    delta,
                    AdjustmentDirection.DECREMENT,
                    booking_id=booking_id,
                    user_id=user_id,
                )
                result.decremented.append(item_id)
        return result

    def _apply(
        self,
        item_id: str,
        quantity: int,
        direction: AdjustmentDirection,
        *,
        booking_id: Optional[str],
        user_id: Optional[str],
    ) -> int:
        if direction == AdjustmentDirection.DECREMENT:
            if not self.repository.decrement_if_available(item_id, quantity):
                available = self.repository.current_quantity(item_id)
                if available is None:
                    prometheus_metrics.record_inventory_rejection("not_found")
                    raise InventoryItemNotFoundException(item_id)
                prometheus_metrics.record_inventory_rejection("insufficient")
                logger.info(
                    "Decrement of %s for item %s rejected, %s available",
                    quantity,
                    item_id,
                    available,
                )
                raise InsufficientInventoryException(item_id, quantity, available)
            change, reason = -quantity, HISTORY_REASON_BOOKING_RESERVE
        else:
            if not self.repository.increment(item_id, quantity):
                prometheus_metrics.record_inventory_rejection("not_found")
                raise InventoryItemNotFoundException(item_id)
            change, reason = quantity, HISTORY_REASON_BOOKING_RELEASE

        self.repository.record_history(
            item_id=item_id,
            change=change,
            reason=reason,
            booking_id=booking_id,
            user_id=user_id,
        )
        return int(self.repository.current_quantity(item_id) or 0)
