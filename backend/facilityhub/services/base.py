# backend/facilityhub/services/base.py
"""
Base Service Pattern for FacilityHub

Provides common functionality for all service classes including:
- Transaction management
- Logging
- Error handling
- Performance monitoring
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, TypeVar, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Provides common patterns for:
    - Database session management
    - Transaction handling
    - Performance monitoring
    """

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                # Do multiple operations
                self.db.add(entity)
                # Note: commit is handled automatically

        IntegrityError is re-raised as-is so callers can map constraint
        violations to domain errors.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except IntegrityError:
            self.logger.warning("Transaction rejected by a database constraint")
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception as e:
            self.logger.error(f"Unexpected error in transaction: {str(e)}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, data):
                # Method implementation
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time

                    # Only log if it's actually slow
                    if elapsed > SLOW_OPERATION_SECONDS and hasattr(self, "logger"):
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if success else "error",
                        error_type=error_type,
                    )

            wrapper._operation_name = operation_name  # type: ignore[attr-defined]
            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log an operation with context.

        Use @measure_operation for timing.
        """
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
