# backend/facilityhub/services/inventory_service.py
"""
Inventory Service for FacilityHub

Item stock outside of booking claims: creating items, returns, low-stock
reporting and the quantity ledger. Committed quantity is always computed
from active bookings, never stored.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import HISTORY_REASON_INITIAL_STOCK, HISTORY_REASON_RETURN
from ..core.exceptions import (
    FacilityNotFoundException,
    InventoryItemNotFoundException,
    ValidationException,
)
from ..models.inventory import InventoryHistory, InventoryItem
from ..repositories import RepositoryFactory
from ..repositories.inventory_repository import InventoryRepository
from ..schemas.inventory import InventoryItemCreate
from .base import BaseService

logger = logging.getLogger(__name__)


class InventoryService(BaseService):
    def __init__(self, db: Session, repository: Optional[InventoryRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_inventory_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.facility_repository = RepositoryFactory.create_facility_repository(db)

    @BaseService.measure_operation("create_item")
    def create_item(self, data: InventoryItemCreate, user_id: Optional[str] = None) -> InventoryItem:
        """Create an item; its starting stock is the first ledger entry."""
        if data.facility_id and not self.facility_repository.get_by_id(
            data.facility_id, load_relationships=False
        ):
            raise FacilityNotFoundException(data.facility_id)

        with self.transaction():
            item = self.repository.create(
                name=data.name,
                quantity=data.quantity,
                facility_id=data.facility_id,
                is_deleted=False,
            )
            if data.quantity:
                self.repository.record_history(
                    item_id=item.id,
                    change=data.quantity,
                    reason=HISTORY_REASON_INITIAL_STOCK,
                    user_id=user_id,
                )

        self.log_operation("create_item", item_id=item.id, quantity=data.quantity)
        return item

    @BaseService.measure_operation("get_item")
    def get_item(self, item_id: str, show_deleted: bool = False) -> InventoryItem:
        item = self.repository.get_by_id(item_id, load_relationships=False)
        if not item or (item.is_deleted and not show_deleted):
            raise InventoryItemNotFoundException(item_id)
        return item

    @BaseService.measure_operation("get_low_stock_items")
    def get_low_stock_items(self, threshold: Optional[int] = None) -> List[InventoryItem]:
        """Items whose free quantity is strictly below ``threshold``."""
        return self.repository.get_low_stock(
            settings.low_stock_threshold if threshold is None else threshold
        )

    @BaseService.measure_operation("return_item")
    def return_item(
        self,
        item_id: str,
        quantity: int,
        condition: Optional[str] = None,
        notes: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> InventoryItem:
        """
        Put returned units back into stock.

        Raises:
            ValidationException: quantity is not positive
            InventoryItemNotFoundException: item missing or deleted
        """
        if quantity <= 0:
            raise ValidationException(
                "Returned quantity must be positive",
                code="INVALID_QUANTITY",
                details={"quantity": quantity},
            )

        with self.transaction():
            if not self.repository.increment(item_id, quantity):
                raise InventoryItemNotFoundException(item_id)
            self.repository.record_history(
                item_id=item_id,
                change=quantity,
                reason=HISTORY_REASON_RETURN,
                user_id=user_id,
                condition=condition,
                notes=notes,
            )

        logger.info(f"Returned {quantity} of item {item_id} (condition={condition or 'n/a'})")
        return self.get_item(item_id)

    @BaseService.measure_operation("get_committed_quantity")
    def get_committed_quantity(self, item_id: str) -> int:
        """Units of the item held by active bookings."""
        self.get_item(item_id)
        return self.booking_repository.sum_active_claims(item_id)

    @BaseService.measure_operation("get_history")
    def get_history(self, item_id: str, limit: int = 100) -> List[InventoryHistory]:
        self.get_item(item_id, show_deleted=True)
        return self.repository.get_history(item_id, limit=limit)
