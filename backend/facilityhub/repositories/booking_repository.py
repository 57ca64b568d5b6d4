# backend/facilityhub/repositories/booking_repository.py
"""
Booking Repository for FacilityHub

Data access for bookings and their inventory claims. The overlap
predicate for conflict checks is evaluated in SQL so only bookings that
can collide with the probe window are loaded.
"""

from datetime import datetime
import logging
from typing import List, Optional, cast

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_BOOKING_STATUSES, Booking, BookingItem
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(Booking.items))

    def get_booking(self, booking_id: str, include_deleted: bool = False) -> Optional[Booking]:
        """Fetch a booking with its items; soft-deleted rows are hidden unless asked for."""
        try:
            query = self._apply_eager_loading(self.db.query(Booking)).filter(
                Booking.id == booking_id
            )
            if not include_deleted:
                query = query.filter(Booking.is_deleted.is_(False))
            return cast(Optional[Booking], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to get booking: {str(e)}")

    def get_booking_for_update(self, booking_id: str) -> Optional[Booking]:
        """
        Reload a non-deleted booking with a row lock held until the transaction ends.

        Attributes already in the session are overwritten with the stored row,
        so writes committed by other sessions are visible.
        """
        try:
            return cast(
                Optional[Booking],
                self._apply_eager_loading(self.db.query(Booking))
                .filter(Booking.id == booking_id, Booking.is_deleted.is_(False))
                .with_for_update(of=Booking)
                .populate_existing()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock booking: {str(e)}")

    # Conflict queries

    def get_active_windows_for_facility(
        self,
        facility_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Active bookings of a facility whose window intersects [start, end).

        Returns light rows carrying only id, start_date and end_date.
        """
        try:
            query = self.db.query(Booking.id, Booking.start_date, Booking.end_date).filter(
                Booking.facility_id == facility_id,
                Booking.is_deleted.is_(False),
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.start_date < end,
                Booking.end_date > start,
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)

            return cast(List[Booking], query.order_by(Booking.start_date).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting active windows for facility {facility_id}: {str(e)}")
            raise RepositoryException(f"Failed to get facility bookings: {str(e)}")

    # Listing

    def get_user_bookings(
        self,
        user_id: str,
        *,
        include_deleted: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Booking]:
        try:
            query = self._apply_eager_loading(self.db.query(Booking)).filter(
                Booking.user_id == user_id
            )
            if not include_deleted:
                query = query.filter(Booking.is_deleted.is_(False))
            return cast(
                List[Booking],
                query.order_by(Booking.start_date.desc()).offset(skip).limit(limit).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to get user bookings: {str(e)}")

    def get_all_bookings(
        self,
        *,
        facility_id: Optional[str] = None,
        status: Optional[str] = None,
        include_deleted: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Booking]:
        try:
            query = self._apply_eager_loading(self.db.query(Booking))
            if facility_id:
                query = query.filter(Booking.facility_id == facility_id)
            if status:
                query = query.filter(Booking.status == status)
            if not include_deleted:
                query = query.filter(Booking.is_deleted.is_(False))
            return cast(
                List[Booking],
                query.order_by(Booking.start_date.desc()).offset(skip).limit(limit).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    # Inventory claims

    def replace_items(self, booking: Booking, claims: List[dict]) -> None:
        """Swap the booking's claim rows for ``claims``, preserving list order."""
        booking.items.clear()
        for position, claim in enumerate(claims):
            booking.items.append(
                BookingItem(
                    inventory_item_id=claim["inventory_item_id"],
                    quantity=claim["quantity"],
                    position=position,
                )
            )
        self.flush()

    def sum_active_claims(self, inventory_item_id: str) -> int:
        """Total quantity of an item held by active bookings."""
        try:
            total = (
                self.db.query(func.coalesce(func.sum(BookingItem.quantity), 0))
                .join(Booking, Booking.id == BookingItem.booking_id)
                .filter(
                    BookingItem.inventory_item_id == inventory_item_id,
                    Booking.is_deleted.is_(False),
                    Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                )
                .scalar()
            )
            return int(total or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error summing claims for item {inventory_item_id}: {str(e)}")
            raise RepositoryException(f"Failed to sum inventory claims: {str(e)}")
