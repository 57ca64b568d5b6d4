# backend/tests/unit/services/test_conflict_checker.py
"""
ConflictChecker against a real session.

Bookings are inserted directly so each test controls exactly which rows
the overlap query sees.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import Session

from facilityhub.core.exceptions import BookingConflictException, InvalidIntervalException
from facilityhub.models import Booking, Facility
from facilityhub.models.booking import BookingStatus
from facilityhub.services.conflict_checker import ConflictChecker


def _utc(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def checker(db: Session) -> ConflictChecker:
    return ConflictChecker(db)


class TestAssertNoConflicts:
    def test_overlapping_window_raises(self, checker, facility, make_booking):
        existing = make_booking(_utc(10), _utc(15))

        with pytest.raises(BookingConflictException) as exc_info:
            checker.assert_no_conflicts(facility.id, _utc(12), _utc(14))

        assert exc_info.value.details == {
            "facility_id": facility.id,
            "conflicting_booking_id": existing.id,
        }

    def test_touching_boundary_is_free(self, checker, facility, make_booking):
        make_booking(_utc(10), _utc(15))

        checker.assert_no_conflicts(facility.id, _utc(15), _utc(20))
        checker.assert_no_conflicts(facility.id, _utc(5), _utc(10))

    def test_request_containing_existing_raises(self, checker, facility, make_booking):
        make_booking(_utc(10), _utc(12))

        with pytest.raises(BookingConflictException):
            checker.assert_no_conflicts(facility.id, _utc(9), _utc(20))

    @pytest.mark.parametrize(
        "status", [BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value]
    )
    def test_inactive_statuses_are_ignored(self, checker, facility, make_booking, status):
        make_booking(_utc(10), _utc(15), status=status)

        checker.assert_no_conflicts(facility.id, _utc(12), _utc(14))

    def test_pending_bookings_block(self, checker, facility, make_booking):
        make_booking(_utc(10), _utc(15), status=BookingStatus.PENDING.value)

        with pytest.raises(BookingConflictException):
            checker.assert_no_conflicts(facility.id, _utc(12), _utc(14))

    def test_soft_deleted_bookings_are_ignored(self, checker, facility, make_booking):
        make_booking(_utc(10), _utc(15), is_deleted=True)

        checker.assert_no_conflicts(facility.id, _utc(12), _utc(14))

    def test_other_facilities_are_ignored(self, checker, db, facility, make_booking):
        other = Facility(name="Annex", is_active=True)
        db.add(other)
        db.commit()
        make_booking(_utc(10), _utc(15), facility_id=other.id)

        checker.assert_no_conflicts(facility.id, _utc(12), _utc(14))

    def test_excluded_booking_does_not_conflict_with_itself(
        self, checker, facility, make_booking
    ):
        existing = make_booking(_utc(10), _utc(15))

        checker.assert_no_conflicts(
            facility.id, _utc(11), _utc(16), exclude_booking_id=existing.id
        )

    def test_invalid_window_is_rejected_before_querying(self, db):
        repository = Mock()
        checker = ConflictChecker(db, repository)

        with pytest.raises(InvalidIntervalException):
            checker.assert_no_conflicts("F", _utc(15), _utc(10))

        repository.get_active_windows_for_facility.assert_not_called()


class TestCheckBookingConflicts:
    def test_lists_every_overlap(self, checker, facility, make_booking):
        first = make_booking(_utc(2), _utc(4))
        second = make_booking(_utc(5), _utc(7))
        make_booking(_utc(20), _utc(22))

        conflicts = checker.check_booking_conflicts(facility.id, _utc(3), _utc(6))

        assert [c["booking_id"] for c in conflicts] == [first.id, second.id]
        assert conflicts[0]["start_date"] == _utc(2).isoformat()
        assert conflicts[0]["end_date"] == _utc(4).isoformat()

    def test_is_available(self, checker, facility, make_booking):
        make_booking(_utc(10), _utc(15))

        assert checker.is_available(facility.id, _utc(15), _utc(16)) is True
        assert checker.is_available(facility.id, _utc(14), _utc(16)) is False

    def test_repeated_checks_agree_and_write_nothing(self, db, checker, facility, make_booking):
        make_booking(_utc(10), _utc(15))
        bookings_before = db.query(Booking).count()

        first = checker.check_booking_conflicts(facility.id, _utc(12), _utc(18))
        second = checker.check_booking_conflicts(facility.id, _utc(12), _utc(18))

        assert first == second
        assert checker.is_available(facility.id, _utc(12), _utc(18)) is False
        assert checker.is_available(facility.id, _utc(12), _utc(18)) is False
        assert not db.new and not db.dirty and not db.deleted
        assert db.query(Booking).count() == bookings_before

    def test_windows_are_returned_in_utc(self, checker, facility, make_booking):
        make_booking(_utc(10), _utc(15))

        windows = checker.get_active_windows(facility.id, _utc(1), _utc(30))

        assert len(windows) == 1
        _, start, end = windows[0]
        assert start.tzinfo == timezone.utc
        assert (start, end) == (_utc(10), _utc(15))

    def test_repository_rows_are_rechecked(self, db):
        row = Mock(id="B1", start_date=_utc(10), end_date=_utc(15))
        repository = Mock()
        # A candidate the SQL filter let through that only touches the window
        repository.get_active_windows_for_facility.return_value = [row]
        checker = ConflictChecker(db, repository)

        assert checker.check_booking_conflicts("F", _utc(15), _utc(16)) == []
