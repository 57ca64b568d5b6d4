# backend/facilityhub/repositories/factory.py
"""
Repository Factory for FacilityHub

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .facility_repository import FacilityRepository
    from .inventory_repository import InventoryRepository
    from .job_repository import JobRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_inventory_repository(db: Session) -> "InventoryRepository":
        from .inventory_repository import InventoryRepository

        return InventoryRepository(db)

    @staticmethod
    def create_facility_repository(db: Session) -> "FacilityRepository":
        from .facility_repository import FacilityRepository

        return FacilityRepository(db)

    @staticmethod
    def create_job_repository(db: Session) -> "JobRepository":
        from .job_repository import JobRepository

        return JobRepository(db)
