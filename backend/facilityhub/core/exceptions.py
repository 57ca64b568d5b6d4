# backend/facilityhub/core/exceptions.py
"""
Domain-specific exceptions for the FacilityHub booking core.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from .constants import BOOKING_CONFLICT_MESSAGE, FACILITY_BUSY_MESSAGE

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller identity is missing."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class InvalidIntervalException(ValidationException):
    """Raised when a booking window does not satisfy start < end."""

    def __init__(self, start: Any, end: Any):
        super().__init__(
            message="Start date must be before end date",
            code="INVALID_INTERVAL",
            details={"start_date": str(start), "end_date": str(end)},
        )


class BookingConflictException(ConflictException):
    """Raised when a booking overlaps an active booking of the same facility."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or BOOKING_CONFLICT_MESSAGE,
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class FacilityBusyException(ConflictException):
    """Raised when the facility mutex could not be acquired in time."""

    def __init__(self, facility_id: str):
        super().__init__(
            message=FACILITY_BUSY_MESSAGE,
            code="FACILITY_BUSY",
            details={"facility_id": facility_id},
        )


class InsufficientInventoryException(BusinessRuleException):
    """Raised when a decrement would drive an item's quantity negative."""

    def __init__(self, item_id: str, requested: int, available: Optional[int] = None):
        super().__init__(
            message=f"Insufficient inventory for item {item_id}",
            code="INSUFFICIENT_INVENTORY",
            details={
                "inventory_item_id": item_id,
                "requested": requested,
                "available": available,
            },
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Raised when a booking status change is not allowed."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot change booking status from {current} to {requested}",
            code="INVALID_STATUS_TRANSITION",
            details={"current_status": current, "requested_status": requested},
        )


class BookingNotFoundException(NotFoundException):
    def __init__(self, booking_id: str):
        super().__init__(
            message="Booking not found",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class InventoryItemNotFoundException(NotFoundException):
    def __init__(self, item_id: str):
        super().__init__(
            message="Inventory item not found",
            code="INVENTORY_ITEM_NOT_FOUND",
            details={"inventory_item_id": item_id},
        )


class FacilityNotFoundException(NotFoundException):
    def __init__(self, facility_id: str):
        super().__init__(
            message="Facility not found",
            code="FACILITY_NOT_FOUND",
            details={"facility_id": facility_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
