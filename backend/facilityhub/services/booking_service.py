# backend/facilityhub/services/booking_service.py
"""
Booking Service for FacilityHub

Handles the booking lifecycle:
- Creating bookings with conflict checks and inventory claims
- Updating window, facility, items or status
- Cancelling and soft deleting, both of which release inventory
- Availability checks and alternative date suggestions

Every write for a facility runs under that facility's mutex and inside a
single transaction: the conflict check, the inventory changes and the
booking row either all land or none do. Events are published after commit
and never fail the operation.
"""

from contextlib import ExitStack, contextmanager
from datetime import datetime, timezone
import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    BookingConflictException,
    BookingNotFoundException,
    FacilityBusyException,
    FacilityNotFoundException,
    InvalidStatusTransitionException,
    RepositoryException,
    ServiceException,
)
from ..core.facility_lock import facility_lock_sync
from ..core.intervals import ensure_utc, validate_interval
from ..core.ulid_helper import generate_ulid
from ..events import (
    BookingCancelled,
    BookingCreated,
    BookingDeleted,
    BookingUpdated,
    Event,
    EventPublisher,
    InventoryLowStock,
    Publisher,
)
from ..models.booking import (
    ACTIVE_BOOKING_STATUSES,
    ALLOWED_STATUS_TRANSITIONS,
    Booking,
    BookingStatus,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..repositories.facility_repository import FacilityRepository
from ..schemas.booking import BookingCreate, BookingUpdate
from .base import BaseService
from .conflict_checker import ConflictChecker
from .date_suggestion_service import DateSuggestionService, SuggestedDate
from .inventory_adjuster import (
    AdjustmentDirection,
    AdjustmentResult,
    InventoryAdjuster,
    ItemClaim,
    to_claims,
)

logger = logging.getLogger(__name__)

EXCLUSION_CONSTRAINT_NAME = "bookings_no_overlap_per_facility"

# Fields a patch may set to None explicitly
_NULLABLE_PATCH_FIELDS = frozenset({"notes"})


def _is_overlap_violation(exc: Exception) -> bool:
    """Whether a write failed because another booking took the window first."""
    orig = getattr(exc, "orig", None) or getattr(exc, "__cause__", None)
    # RepositoryException wraps the IntegrityError that carries the driver error
    orig = getattr(orig, "orig", None) or orig
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode in ("23P01", "40P01"):
        return True
    message = str(exc).lower()
    return (
        EXCLUSION_CONSTRAINT_NAME in message
        or "exclusion constraint" in message
        or "deadlock detected" in message
    )


def _stored_claims(claims: Sequence[ItemClaim]) -> List[Dict[str, Any]]:
    return [
        {"inventory_item_id": claim.inventory_item_id, "quantity": claim.quantity}
        for claim in claims
        if claim.inventory_item_id and claim.quantity > 0
    ]


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Collaborators are injectable so tests can substitute the event
    publisher or any repository.
    """

    def __init__(
        self,
        db: Session,
        event_publisher: Optional[Publisher] = None,
        repository: Optional[BookingRepository] = None,
        facility_repository: Optional[FacilityRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        inventory_adjuster: Optional[InventoryAdjuster] = None,
        date_suggestion_service: Optional[DateSuggestionService] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            event_publisher: Optional event publisher for async side effects
            repository: Optional BookingRepository instance
            facility_repository: Optional FacilityRepository instance
            conflict_checker: Optional ConflictChecker instance
            inventory_adjuster: Optional InventoryAdjuster instance
            date_suggestion_service: Optional DateSuggestionService instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.facility_repository = (
            facility_repository or RepositoryFactory.create_facility_repository(db)
        )
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.inventory_adjuster = inventory_adjuster or InventoryAdjuster(db)
        self.date_suggestion_service = date_suggestion_service or DateSuggestionService(
            db, self.conflict_checker
        )
        self.event_publisher = event_publisher or EventPublisher(
            RepositoryFactory.create_job_repository(db)
        )

    # Writes

    @BaseService.measure_operation("create_booking")
    def create_booking(self, user_id: str, data: BookingCreate) -> Booking:
        """
        Create a booking for ``user_id``.

        Raises:
            InvalidIntervalException: start_date is not before end_date
            FacilityNotFoundException: facility missing or inactive
            BookingConflictException: the window overlaps an active booking
            InsufficientInventoryException: an item cannot cover its claim
            InventoryItemNotFoundException: a claimed item does not exist
            FacilityBusyException: the facility mutex could not be taken in time
        """
        validate_interval(data.start_date, data.end_date)
        start, end = ensure_utc(data.start_date), ensure_utc(data.end_date)
        claims = to_claims(data.items)

        self.log_operation(
            "create_booking",
            user_id=user_id,
            facility_id=data.facility_id,
            start_date=start.isoformat(),
            end_date=end.isoformat(),
        )

        booking_id = generate_ulid()
        with self._overlap_violation_as_conflict():
            with facility_lock_sync(data.facility_id):
                with self.transaction():
                    self._lock_facility(data.facility_id)
                    self.conflict_checker.assert_no_conflicts(data.facility_id, start, end)
                    adjustment = self.inventory_adjuster.adjust(
                        claims,
                        AdjustmentDirection.DECREMENT,
                        booking_id=booking_id,
                        user_id=user_id,
                    )
                    booking = self.repository.create(
                        id=booking_id,
                        facility_id=data.facility_id,
                        user_id=user_id,
                        start_date=start,
                        end_date=end,
                        status=BookingStatus.PENDING.value,
                        notes=data.notes,
                        is_deleted=False,
                    )
                    self.repository.replace_items(booking, _stored_claims(claims))

        logger.info(
            f"Booking {booking.id} created for facility {booking.facility_id} "
            f"({start.isoformat()} - {end.isoformat()})"
        )

        self._publish(
            BookingCreated(
                booking_id=booking.id,
                facility_id=booking.facility_id,
                user_id=booking.user_id,
                created_at=booking.created_at or datetime.now(timezone.utc),
                record=booking.to_dict(),
            )
        )
        self._publish_low_stock(adjustment, booking.id)
        return booking

    @BaseService.measure_operation("update_booking")
    def update_booking(
        self, booking_id: str, patch: BookingUpdate, user_id: Optional[str] = None
    ) -> Booking:
        """
        Apply a partial update.

        The effective window is always validated. While the booking stays
        active it must not overlap another active booking of the effective
        facility. Inventory moves by the net difference between the claims
        held before and after the patch, so a rejected decrement leaves
        every quantity untouched.

        The booking is re-read under lock before the effective facility and
        window are derived, so fields the patch leaves out keep whatever a
        concurrent writer committed. Moving to another facility holds both
        facility mutexes, taken in id order.

        Raises:
            BookingNotFoundException: booking missing or deleted
            InvalidStatusTransitionException: the status change is not allowed
            FacilityBusyException: the booking moved facility while waiting for the lock
            plus everything create_booking raises
        """
        current = self.repository.get_booking(booking_id)
        if not current:
            raise BookingNotFoundException(booking_id)

        changes = {
            key: value
            for key, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_PATCH_FIELDS
        }
        if "status" in changes:
            changes["status"] = BookingStatus(changes["status"]).value

        locked_facilities = {current.facility_id, changes.get("facility_id", current.facility_id)}

        self.log_operation(
            "update_booking", booking_id=booking_id, updated_fields=sorted(changes)
        )

        with self._overlap_violation_as_conflict():
            with self._facility_locks(locked_facilities):
                with self.transaction():
                    booking = self._load_locked_booking(booking_id, locked_facilities)

                    facility_id = changes.get("facility_id", booking.facility_id)
                    start = ensure_utc(changes.get("start_date", booking.start_date))
                    end = ensure_utc(changes.get("end_date", booking.end_date))
                    validate_interval(start, end)

                    previous_status = booking.status
                    new_status = changes.get("status", previous_status)
                    self._check_transition(previous_status, new_status)
                    will_be_active = new_status in ACTIVE_BOOKING_STATUSES

                    self._lock_facility(facility_id)
                    if will_be_active:
                        self.conflict_checker.assert_no_conflicts(
                            facility_id, start, end, exclude_booking_id=booking.id
                        )

                    new_items = (
                        to_claims(changes["items"]) if "items" in changes
                        else to_claims(booking.claims())
                    )
                    adjustment = self.inventory_adjuster.apply_net_change(
                        booking.claims() if booking.is_active else [],
                        new_items if will_be_active else [],
                        booking_id=booking.id,
                        user_id=user_id,
                    )

                    booking.facility_id = facility_id
                    booking.start_date = start
                    booking.end_date = end
                    if "notes" in changes:
                        booking.notes = changes["notes"]
                    if new_status != previous_status:
                        if new_status == BookingStatus.CANCELLED.value:
                            booking.cancel(cancelled_by=user_id)
                        else:
                            booking.status = new_status
                    if "items" in changes:
                        self.repository.replace_items(booking, _stored_claims(new_items))
                    self.repository.flush()

        self._publish(
            BookingUpdated(
                booking_id=booking.id,
                updated_fields=sorted(changes),
                updated_at=booking.updated_at or datetime.now(timezone.utc),
                record=booking.to_dict(),
            )
        )
        if new_status != previous_status and new_status == BookingStatus.CANCELLED.value:
            self._publish(
                BookingCancelled(
                    booking_id=booking.id,
                    cancelled_at=booking.cancelled_at or datetime.now(timezone.utc),
                    cancelled_by=user_id,
                )
            )
        self._publish_low_stock(adjustment, booking.id)
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        reason: Optional[str] = None,
        cancelled_by: Optional[str] = None,
    ) -> Booking:
        """Cancel an active booking and return its claimed inventory."""
        current = self.repository.get_booking(booking_id)
        if not current:
            raise BookingNotFoundException(booking_id)
        locked_facilities = {current.facility_id}

        self.log_operation("cancel_booking", booking_id=booking_id, cancelled_by=cancelled_by)

        with self._facility_locks(locked_facilities):
            with self.transaction():
                booking = self._load_locked_booking(booking_id, locked_facilities)
                self._check_transition(booking.status, BookingStatus.CANCELLED.value)

                self.inventory_adjuster.apply_net_change(
                    booking.claims(), [], booking_id=booking.id, user_id=cancelled_by
                )
                booking.cancel(cancelled_by=cancelled_by, reason=reason)
                self.repository.flush()

        self._publish(
            BookingCancelled(
                booking_id=booking.id,
                cancelled_at=booking.cancelled_at or datetime.now(timezone.utc),
                cancelled_by=cancelled_by,
                reason=reason,
            )
        )
        return booking

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, booking_id: str, deleted_by: Optional[str] = None) -> Booking:
        """
        Soft delete a booking.

        Claims still held by the booking are released.

        Raises:
            BookingNotFoundException: booking missing or already deleted
        """
        current = self.repository.get_booking(booking_id)
        if not current:
            raise BookingNotFoundException(booking_id)
        locked_facilities = {current.facility_id}

        self.log_operation("delete_booking", booking_id=booking_id, deleted_by=deleted_by)

        with self._facility_locks(locked_facilities):
            with self.transaction():
                booking = self._load_locked_booking(booking_id, locked_facilities)

                released = booking.claims() if booking.is_active else []
                self.inventory_adjuster.apply_net_change(
                    released, [], booking_id=booking.id, user_id=deleted_by
                )
                booking.is_deleted = True
                self.repository.flush()

        self._publish(
            BookingDeleted(
                booking_id=booking.id,
                deleted_at=datetime.now(timezone.utc),
                released_items=released,
            )
        )
        return booking

    # Reads

    @BaseService.measure_operation("get_booking")
    def get_booking(self, booking_id: str, show_deleted: bool = False) -> Booking:
        booking = self.repository.get_booking(booking_id, include_deleted=show_deleted)
        if not booking:
            raise BookingNotFoundException(booking_id)
        return booking

    @BaseService.measure_operation("get_bookings_for_user")
    def get_bookings_for_user(
        self,
        user_id: str,
        show_deleted: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Booking]:
        return self.repository.get_user_bookings(
            user_id, include_deleted=show_deleted, skip=skip, limit=limit
        )

    @BaseService.measure_operation("get_all_bookings")
    def get_all_bookings(
        self,
        show_deleted: bool = False,
        facility_id: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Booking]:
        return self.repository.get_all_bookings(
            facility_id=facility_id,
            status=status,
            include_deleted=show_deleted,
            skip=skip,
            limit=limit,
        )

    def check_availability(
        self,
        facility_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """True when no active booking of the facility overlaps [start, end)."""
        return self.conflict_checker.is_available(facility_id, start, end, exclude_booking_id)

    def get_conflicts(
        self,
        facility_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        return self.conflict_checker.check_booking_conflicts(
            facility_id, start, end, exclude_booking_id
        )

    def get_suggested_dates(
        self,
        facility_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[SuggestedDate]:
        return self.date_suggestion_service.suggest(facility_id, start, end, exclude_booking_id)

    # Private helpers

    @contextmanager
    def _facility_locks(self, facility_ids: Set[str]) -> Iterator[None]:
        """Hold the mutex of every facility, acquired in id order."""
        with ExitStack() as stack:
            for facility_id in sorted(facility_ids):
                stack.enter_context(facility_lock_sync(facility_id))
            yield

    def _load_locked_booking(self, booking_id: str, locked_facilities: Set[str]) -> Booking:
        """Re-read the booking row under FOR UPDATE inside the current transaction."""
        booking = self.repository.get_booking_for_update(booking_id)
        if not booking:
            raise BookingNotFoundException(booking_id)
        if booking.facility_id not in locked_facilities:
            # Moved by another writer between the first read and the lock
            raise FacilityBusyException(booking.facility_id)
        return booking

    def _lock_facility(self, facility_id: str) -> None:
        facility = self.facility_repository.get_for_update(facility_id)
        if not facility or not facility.is_active:
            raise FacilityNotFoundException(facility_id)

    @staticmethod
    def _check_transition(current: str, requested: str) -> None:
        if requested == current:
            return
        if requested not in ALLOWED_STATUS_TRANSITIONS.get(current, frozenset()):
            raise InvalidStatusTransitionException(current, requested)

    @contextmanager
    def _overlap_violation_as_conflict(self) -> Iterator[None]:
        """Map a write rejected by the overlap constraint to a booking conflict."""
        try:
            yield
        except (IntegrityError, RepositoryException, ServiceException) as exc:
            if not _is_overlap_violation(exc):
                raise
            prometheus_metrics.record_booking_conflict("constraint")
            logger.warning(f"Booking write rejected by overlap constraint: {exc}")
            raise BookingConflictException() from exc

    def _publish(self, event: Event) -> None:
        """Queue an event; a failure is logged and never reaches the caller."""
        try:
            self.event_publisher.publish(event)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            prometheus_metrics.record_event_publish_failure(type(event).__name__)
            logger.error(f"Failed to publish {type(event).__name__} event: {str(e)}")

    def _publish_low_stock(self, adjustment: AdjustmentResult, booking_id: str) -> None:
        threshold = settings.low_stock_threshold
        for item_id in adjustment.decremented:
            quantity = adjustment.quantities.get(item_id)
            if quantity is not None and quantity < threshold:
                self._publish(
                    InventoryLowStock(
                        item_id=item_id,
                        quantity=quantity,
                        threshold=threshold,
                        booking_id=booking_id,
                    )
                )
