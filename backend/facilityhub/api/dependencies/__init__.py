"""Dependency injection helpers for the API layer."""

from .auth import get_current_user_id, get_optional_user_id
from .database import get_db
from .services import get_booking_service, get_inventory_service

__all__ = [
    "get_booking_service",
    "get_current_user_id",
    "get_db",
    "get_inventory_service",
    "get_optional_user_id",
]
