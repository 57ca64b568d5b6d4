"""Service layer: business rules and transaction boundaries."""

from .base import BaseService
from .booking_service import BookingService
from .conflict_checker import ConflictChecker
from .date_suggestion_service import DateSuggestionService, SuggestedDate
from .inventory_adjuster import AdjustmentDirection, AdjustmentResult, InventoryAdjuster, ItemClaim
from .inventory_service import InventoryService

__all__ = [
    "AdjustmentDirection",
    "AdjustmentResult",
    "BaseService",
    "BookingService",
    "ConflictChecker",
    "DateSuggestionService",
    "InventoryAdjuster",
    "InventoryService",
    "ItemClaim",
    "SuggestedDate",
]
