"""Domain events and the publisher that queues them."""

from facilityhub.events.booking_events import (
    BookingCancelled,
    BookingCreated,
    BookingDeleted,
    BookingUpdated,
)
from facilityhub.events.inventory_events import InventoryLowStock
from facilityhub.events.publisher import Event, EventPublisher, Publisher

__all__ = [
    "BookingCancelled",
    "BookingCreated",
    "BookingDeleted",
    "BookingUpdated",
    "Event",
    "EventPublisher",
    "InventoryLowStock",
    "Publisher",
]
