# backend/facilityhub/services/conflict_checker.py
"""
Conflict Checker Service for FacilityHub

Detects overlaps between a requested facility window and the facility's
active bookings. Windows are half-open, so a booking ending at 10:00 and
another starting at 10:00 do not conflict.

The repository narrows candidates with the overlap predicate in SQL; every
candidate is re-checked here with ``overlaps`` before it counts.
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import BookingConflictException
from ..core.intervals import ensure_utc, overlaps, validate_interval
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService

logger = logging.getLogger(__name__)

Window = Tuple[str, datetime, datetime]


class ConflictChecker(BaseService):
    """Service for checking booking conflicts on a facility."""

    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    def get_active_windows(
        self,
        facility_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Window]:
        """Active booking windows of the facility touching [start, end), in UTC."""
        rows = self.repository.get_active_windows_for_facility(
            facility_id, ensure_utc(start), ensure_utc(end), exclude_booking_id
        )
        return [(row.id, ensure_utc(row.start_date), ensure_utc(row.end_date)) for row in rows]

    @BaseService.measure_operation("check_booking_conflicts")
    def check_booking_conflicts(
        self,
        facility_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List every active booking of the facility that overlaps [start, end).

        Args:
            facility_id: Facility to check
            start: Window start (inclusive)
            end: Window end (exclusive)
            exclude_booking_id: Booking to ignore, used when a booking is edited

        Returns:
            List of conflicts with booking id and window
        """
        validate_interval(start, end)
        start, end = ensure_utc(start), ensure_utc(end)

        conflicts = [
            {
                "booking_id": booking_id,
                "start_date": booking_start.isoformat(),
                "end_date": booking_end.isoformat(),
            }
            for booking_id, booking_start, booking_end in self.get_active_windows(
                facility_id, start, end, exclude_booking_id
            )
            if overlaps(start, end, booking_start, booking_end)
        ]

        if conflicts:
            logger.info(
                f"Found {len(conflicts)} booking conflicts for facility {facility_id} "
                f"between {start.isoformat()} and {end.isoformat()}"
            )

        return conflicts

    @BaseService.measure_operation("is_available")
    def is_available(
        self,
        facility_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        return not self.check_booking_conflicts(facility_id, start, end, exclude_booking_id)

    @BaseService.measure_operation("assert_no_conflicts")
    def assert_no_conflicts(
        self,
        facility_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """
        Raise on the first active booking overlapping [start, end).

        Raises:
            InvalidIntervalException: start is not before end
            BookingConflictException: the window is taken
        """
        validate_interval(start, end)
        start, end = ensure_utc(start), ensure_utc(end)

        for booking_id, booking_start, booking_end in self.get_active_windows(
            facility_id, start, end, exclude_booking_id
        ):
            if overlaps(start, end, booking_start, booking_end):
                prometheus_metrics.record_booking_conflict("check")
                logger.info(
                    "Booking window rejected for facility %s: overlaps booking %s",
                    facility_id,
                    booking_id,
                )
                raise BookingConflictException(
                    details={
                        "facility_id": facility_id,
                        "conflicting_booking_id": booking_id,
                    }
                )
