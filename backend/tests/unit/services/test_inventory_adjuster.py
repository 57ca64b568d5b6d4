# backend/tests/unit/services/test_inventory_adjuster.py
"""Conditional quantity updates applied by the InventoryAdjuster."""

import pytest
from sqlalchemy.orm import Session

from facilityhub.core.constants import (
    HISTORY_REASON_BOOKING_RELEASE,
    HISTORY_REASON_BOOKING_RESERVE,
)
from facilityhub.core.exceptions import (
    InsufficientInventoryException,
    InventoryItemNotFoundException,
    ValidationException,
)
from facilityhub.models import InventoryHistory, InventoryItem
from facilityhub.services.inventory_adjuster import (
    AdjustmentDirection,
    InventoryAdjuster,
    ItemClaim,
    to_claims,
)


@pytest.fixture
def adjuster(db: Session) -> InventoryAdjuster:
    return InventoryAdjuster(db)


def _quantity(db: Session, item: InventoryItem) -> int:
    db.expire_all()
    return db.get(InventoryItem, item.id).quantity


def _history(db: Session, item: InventoryItem):
    return (
        db.query(InventoryHistory)
        .filter(InventoryHistory.item_id == item.id)
        .order_by(InventoryHistory.created_at, InventoryHistory.id)
        .all()
    )


class TestClaims:
    def test_from_dict_and_object(self):
        class Claim:
            inventory_item_id = "I2"
            quantity = 3

        claims = to_claims([{"inventory_item_id": "I1", "quantity": 2}, Claim(), None])

        assert claims[0] == ItemClaim("I1", 2)
        assert claims[1] == ItemClaim("I2", 3)
        assert claims[2] == ItemClaim("", 0)

    def test_none_is_empty(self):
        assert to_claims(None) == []


class TestAdjust:
    def test_decrement_reduces_quantity_and_records_history(self, db, adjuster, make_item):
        item = make_item(10)

        result = adjuster.adjust(
            [{"inventory_item_id": item.id, "quantity": 4}],
            AdjustmentDirection.DECREMENT,
            booking_id="B1",
            user_id="user-1",
        )
        db.commit()

        assert result.quantities == {item.id: 6}
        assert result.decremented == [item.id]
        assert _quantity(db, item) == 6
        (entry,) = _history(db, item)
        assert entry.change == -4
        assert entry.reason == HISTORY_REASON_BOOKING_RESERVE
        assert entry.booking_id == "B1"
        assert entry.user_id == "user-1"

    def test_increment_restores_quantity(self, db, adjuster, make_item):
        item = make_item(2)

        result = adjuster.adjust(
            [ItemClaim(item.id, 3)], AdjustmentDirection.INCREMENT, booking_id="B1"
        )
        db.commit()

        assert result.quantities == {item.id: 5}
        assert result.decremented == []
        assert _history(db, item)[0].reason == HISTORY_REASON_BOOKING_RELEASE

    def test_insufficient_stock_leaves_quantity_unchanged(self, db, adjuster, make_item):
        item = make_item(3)

        with pytest.raises(InsufficientInventoryException) as exc_info:
            adjuster.adjust([ItemClaim(item.id, 5)], AdjustmentDirection.DECREMENT)
        db.rollback()

        assert exc_info.value.details["available"] == 3
        assert exc_info.value.details["requested"] == 5
        assert _quantity(db, item) == 3
        assert _history(db, item) == []

    def test_exact_stock_can_be_taken(self, db, adjuster, make_item):
        item = make_item(3)

        result = adjuster.adjust([ItemClaim(item.id, 3)], AdjustmentDirection.DECREMENT)

        assert result.quantities[item.id] == 0

    def test_missing_item_raises_not_found(self, adjuster):
        with pytest.raises(InventoryItemNotFoundException):
            adjuster.adjust([ItemClaim("01HZZZZZZZZZZZZZZZZZZZZZZZ", 1)], AdjustmentDirection.DECREMENT)

    def test_deleted_item_raises_not_found(self, db, adjuster, make_item):
        item = make_item(10)
        item.is_deleted = True
        db.commit()

        with pytest.raises(InventoryItemNotFoundException):
            adjuster.adjust([ItemClaim(item.id, 1)], AdjustmentDirection.INCREMENT)

    def test_empty_id_and_zero_quantity_are_skipped(self, db, adjuster, make_item):
        item = make_item(10)

        result = adjuster.adjust(
            [ItemClaim("", 4), ItemClaim(item.id, 0)], AdjustmentDirection.DECREMENT
        )

        assert result.quantities == {}
        assert _quantity(db, item) == 10
        assert _history(db, item) == []

    def test_negative_quantity_rejected_before_any_change(self, db, adjuster, make_item):
        item = make_item(10)

        with pytest.raises(ValidationException) as exc_info:
            adjuster.adjust(
                [ItemClaim(item.id, 2), ItemClaim(item.id, -1)],
                AdjustmentDirection.DECREMENT,
            )

        assert exc_info.value.code == "NEGATIVE_QUANTITY"
        assert _quantity(db, item) == 10

    def test_failure_midway_is_all_or_nothing_after_rollback(self, db, adjuster, make_item):
        plenty = make_item(10, name="Table")
        scarce = make_item(1, name="Projector")

        with pytest.raises(InsufficientInventoryException):
            adjuster.adjust(
                [ItemClaim(plenty.id, 4), ItemClaim(scarce.id, 2)],
                AdjustmentDirection.DECREMENT,
            )
        db.rollback()

        assert _quantity(db, plenty) == 10
        assert _quantity(db, scarce) == 1


class TestApplyNetChange:
    def test_shrinking_claim_releases_difference(self, db, adjuster, make_item):
        item = make_item(6)

        result = adjuster.apply_net_change(
            [ItemClaim(item.id, 4)], [ItemClaim(item.id, 2)], booking_id="B1"
        )
        db.commit()

        assert result.quantities == {item.id: 8}
        assert result.decremented == []
        (entry,) = _history(db, item)
        assert entry.change == 2

    def test_growing_claim_takes_difference(self, db, adjuster, make_item):
        item = make_item(6)

        result = adjuster.apply_net_change([ItemClaim(item.id, 2)], [ItemClaim(item.id, 5)])

        assert result.quantities == {item.id: 3}
        assert result.decremented == [item.id]

    def test_unchanged_claim_touches_nothing(self, db, adjuster, make_item):
        item = make_item(6)

        result = adjuster.apply_net_change([ItemClaim(item.id, 2)], [ItemClaim(item.id, 2)])

        assert result.quantities == {}
        assert _history(db, item) == []

    def test_release_runs_before_reserve(self, db, adjuster, make_item):
        released = make_item(0, name="Chair")
        taken = make_item(3, name="Table")

        result = adjuster.apply_net_change(
            [ItemClaim(released.id, 5)], [ItemClaim(taken.id, 3)]
        )

        assert result.quantities == {released.id: 5, taken.id: 0}

    def test_insufficient_growth_raises_and_rolls_back(self, db, adjuster, make_item):
        item = make_item(1)

        with pytest.raises(InsufficientInventoryException):
            adjuster.apply_net_change([ItemClaim(item.id, 2)], [ItemClaim(item.id, 5)])
        db.rollback()

        assert _quantity(db, item) == 1

    def test_duplicate_entries_are_summed(self, db, adjuster, make_item):
        item = make_item(10)

        result = adjuster.apply_net_change(
            [], [ItemClaim(item.id, 2), ItemClaim(item.id, 3)]
        )

        assert result.quantities == {item.id: 5}
