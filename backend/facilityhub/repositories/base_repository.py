# backend/facilityhub/repositories/base_repository.py
"""
Base Repository Pattern for FacilityHub

Provides the foundation for all repository classes with:
- Common CRUD operations
- Type safety with generics
- Transaction support (managed by services)

Repositories never commit; the service layer owns transaction boundaries.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Concrete base repository implementation with common data access patterns.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        """
        Retrieve an entity by its primary key.

        Implements eager loading for relationships when requested.
        """
        try:
            query = self.db.query(self.model).filter(self.model.id == id)

            if load_relationships:
                query = self._apply_eager_loading(query)

            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()  # Get ID without committing
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}") from e

    def flush(self) -> None:
        """Flush pending ORM changes, translating constraint failures."""
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.logger.error("Integrity error flushing %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc

    # Protected helper methods for use by subclasses

    def _apply_eager_loading(self, query: Query) -> Query:
        """
        Apply eager loading to relationships.

        Override in subclasses to specify which relationships to load.
        """
        return query
