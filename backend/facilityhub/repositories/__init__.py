"""Repository layer: data access only, no commits."""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .facility_repository import FacilityRepository
from .factory import RepositoryFactory
from .inventory_repository import InventoryRepository
from .job_repository import JobRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "FacilityRepository",
    "InventoryRepository",
    "JobRepository",
    "RepositoryFactory",
]
