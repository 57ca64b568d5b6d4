# backend/tests/unit/services/test_inventory_service.py
"""InventoryService: stock creation, returns, low stock and committed quantity."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import Session

from facilityhub.core.constants import HISTORY_REASON_INITIAL_STOCK, HISTORY_REASON_RETURN
from facilityhub.core.exceptions import (
    FacilityNotFoundException,
    InventoryItemNotFoundException,
    ValidationException,
)
from facilityhub.models.booking import BookingStatus
from facilityhub.schemas.inventory import InventoryItemCreate
from facilityhub.services.inventory_service import InventoryService


@pytest.fixture
def inventory_service(db: Session) -> InventoryService:
    return InventoryService(db)


def _utc(day: int) -> datetime:
    return datetime(2024, 1, day, tzinfo=timezone.utc)


class TestCreateItem:
    def test_initial_stock_is_recorded(self, inventory_service, facility):
        item = inventory_service.create_item(
            InventoryItemCreate(name="  Folding table ", quantity=12, facility_id=facility.id),
            user_id="admin",
        )

        assert item.name == "Folding table"
        assert item.quantity == 12
        (entry,) = inventory_service.get_history(item.id)
        assert entry.change == 12
        assert entry.reason == HISTORY_REASON_INITIAL_STOCK
        assert entry.user_id == "admin"

    def test_empty_stock_has_no_history(self, inventory_service):
        item = inventory_service.create_item(InventoryItemCreate(name="Lectern"))

        assert inventory_service.get_history(item.id) == []

    def test_unknown_facility_rejected(self, inventory_service):
        with pytest.raises(FacilityNotFoundException):
            inventory_service.create_item(
                InventoryItemCreate(name="Lectern", facility_id="01HZZZZZZZZZZZZZZZZZZZZZZZ")
            )


class TestReturnItem:
    def test_return_adds_stock_and_history(self, inventory_service, make_item):
        item = make_item(2)

        returned = inventory_service.return_item(
            item.id, 3, condition="damaged", notes="cracked leg", user_id="staff"
        )

        assert returned.quantity == 5
        latest = inventory_service.get_history(item.id)[0]
        assert latest.reason == HISTORY_REASON_RETURN
        assert latest.condition == "damaged"
        assert latest.notes == "cracked leg"

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, inventory_service, make_item, quantity):
        item = make_item(2)

        with pytest.raises(ValidationException):
            inventory_service.return_item(item.id, quantity)

    def test_missing_item(self, inventory_service):
        with pytest.raises(InventoryItemNotFoundException):
            inventory_service.return_item("01HZZZZZZZZZZZZZZZZZZZZZZZ", 1)


class TestQueries:
    def test_low_stock_uses_strict_threshold(self, inventory_service, make_item):
        make_item(1, name="Projector")
        make_item(5, name="Chair")
        make_item(0, name="Banner")

        names = [item.name for item in inventory_service.get_low_stock_items(threshold=5)]

        assert names == ["Banner", "Projector"]

    def test_deleted_items_are_hidden(self, db, inventory_service, make_item):
        item = make_item(1)
        item.is_deleted = True
        db.commit()

        with pytest.raises(InventoryItemNotFoundException):
            inventory_service.get_item(item.id)
        assert inventory_service.get_item(item.id, show_deleted=True).id == item.id
        assert inventory_service.get_low_stock_items(threshold=5) == []

    def test_committed_quantity_counts_active_bookings_only(
        self, inventory_service, make_item, make_booking
    ):
        item = make_item(20)
        make_booking(_utc(1), _utc(2), items=[(item.id, 3)])
        make_booking(_utc(3), _utc(4), status=BookingStatus.PENDING.value, items=[(item.id, 2)])
        make_booking(_utc(5), _utc(6), status=BookingStatus.CANCELLED.value, items=[(item.id, 7)])
        make_booking(_utc(7), _utc(8), is_deleted=True, items=[(item.id, 11)])

        assert inventory_service.get_committed_quantity(item.id) == 5
