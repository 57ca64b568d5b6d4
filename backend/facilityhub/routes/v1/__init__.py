"""Version 1 API routers."""

from . import bookings, inventory

__all__ = ["bookings", "inventory"]
