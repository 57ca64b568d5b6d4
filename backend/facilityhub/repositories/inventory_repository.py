# backend/facilityhub/repositories/inventory_repository.py
"""
Inventory Repository for FacilityHub

Quantity changes are single conditional UPDATE statements so concurrent
writers cannot both pass a stale availability check.
"""

from datetime import datetime, timezone
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.inventory import InventoryHistory, InventoryItem
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class InventoryRepository(BaseRepository[InventoryItem]):
    def __init__(self, db: Session):
        super().__init__(db, InventoryItem)
        self.logger = logging.getLogger(__name__)

    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        try:
            return cast(
                Optional[InventoryItem],
                self.db.query(InventoryItem)
                .filter(InventoryItem.id == item_id, InventoryItem.is_deleted.is_(False))
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting inventory item {item_id}: {str(e)}")
            raise RepositoryException(f"Failed to get inventory item: {str(e)}")

    def decrement_if_available(self, item_id: str, quantity: int) -> bool:
        """
        Subtract ``quantity`` only if that leaves the item non-negative.

        Returns:
            True if a row was updated, False if the item is missing or short
        """
        try:
            updated = (
                self.db.query(InventoryItem)
                .filter(
                    InventoryItem.id == item_id,
                    InventoryItem.is_deleted.is_(False),
                    InventoryItem.quantity >= quantity,
                )
                .update(
                    {
                        InventoryItem.quantity: InventoryItem.quantity - quantity,
                        InventoryItem.updated_at: datetime.now(timezone.utc),
                    },
                    synchronize_session="fetch",
                )
            )
            return bool(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error decrementing inventory item {item_id}: {str(e)}")
            raise RepositoryException(f"Failed to decrement inventory: {str(e)}")

    def increment(self, item_id: str, quantity: int) -> bool:
        try:
            updated = (
                self.db.query(InventoryItem)
                .filter(InventoryItem.id == item_id, InventoryItem.is_deleted.is_(False))
                .update(
                    {
                        InventoryItem.quantity: InventoryItem.quantity + quantity,
                        InventoryItem.updated_at: datetime.now(timezone.utc),
                    },
                    synchronize_session="fetch",
                )
            )
            return bool(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error incrementing inventory item {item_id}: {str(e)}")
            raise RepositoryException(f"Failed to increment inventory: {str(e)}")

    def current_quantity(self, item_id: str) -> Optional[int]:
        try:
            return cast(
                Optional[int],
                self.db.query(InventoryItem.quantity)
                .filter(InventoryItem.id == item_id, InventoryItem.is_deleted.is_(False))
                .scalar(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading quantity for item {item_id}: {str(e)}")
            raise RepositoryException(f"Failed to read inventory quantity: {str(e)}")

    def get_low_stock(self, threshold: int) -> List[InventoryItem]:
        try:
            return cast(
                List[InventoryItem],
                self.db.query(InventoryItem)
                .filter(InventoryItem.is_deleted.is_(False), InventoryItem.quantity < threshold)
                .order_by(InventoryItem.quantity.asc(), InventoryItem.name.asc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting low stock items: {str(e)}")
            raise RepositoryException(f"Failed to get low stock items: {str(e)}")

    # History

    def record_history(
        self,
        *,
        item_id: str,
        change: int,
        reason: str,
        booking_id: Optional[str] = None,
        user_id: Optional[str] = None,
        condition: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> InventoryHistory:
        try:
            entry = InventoryHistory(
                item_id=item_id,
                change=change,
                reason=reason,
                booking_id=booking_id,
                user_id=user_id,
                condition=condition,
                notes=notes,
            )
            self.db.add(entry)
            self.db.flush()
            return entry
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording history for item {item_id}: {str(e)}")
            raise RepositoryException(f"Failed to record inventory history: {str(e)}")

    def get_history(self, item_id: str, limit: int = 100) -> List[InventoryHistory]:
        try:
            return cast(
                List[InventoryHistory],
                self.db.query(InventoryHistory)
                .filter(InventoryHistory.item_id == item_id)
                .order_by(InventoryHistory.created_at.desc(), InventoryHistory.id.desc())
                .limit(limit)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting history for item {item_id}: {str(e)}")
            raise RepositoryException(f"Failed to get inventory history: {str(e)}")
