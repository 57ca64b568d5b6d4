"""Facility data access."""

import logging
from typing import Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.facility import Facility
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class FacilityRepository(BaseRepository[Facility]):
    def __init__(self, db: Session):
        super().__init__(db, Facility)

    def get_for_update(self, facility_id: str) -> Optional[Facility]:
        """
        Load the facility row with a row lock held until the transaction ends.

        Serialises booking writers for the same facility at the database
        level; SQLite ignores FOR UPDATE.
        """
        try:
            return cast(
                Optional[Facility],
                self.db.query(Facility)
                .filter(Facility.id == facility_id)
                .with_for_update()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking facility {facility_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock facility: {str(e)}")
