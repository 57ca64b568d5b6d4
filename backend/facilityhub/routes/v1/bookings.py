# backend/facilityhub/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - List bookings (optionally including deleted)
    POST / - Create a booking
    GET /me - Bookings of the caller
    GET /user/{user_id} - Bookings of a user
    POST /check-availability - Check if a window is free
    POST /suggested-dates - Nearby free windows for a rejected request
    GET /{booking_id} - Booking details
    PATCH /{booking_id} - Update window, facility, items, status or notes
    POST /{booking_id}/cancel - Cancel a booking
    DELETE /{booking_id} - Soft delete a booking
"""

import asyncio
from datetime import datetime
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_current_user_id
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.exceptions import BookingConflictException, DomainException
from ...models.booking import BookingStatus
from ...schemas.booking import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    BookingCancel,
    BookingCreate,
    BookingResponse,
    BookingUpdate,
    SuggestedDateResponse,
    SuggestedDatesRequest,
    SuggestedDatesResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


async def _raise_conflict_with_suggestions(
    booking_service: BookingService,
    exc: BookingConflictException,
    facility_id: str,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
) -> NoReturn:
    """Answer a conflict with nearby free windows instead of a bare error."""
    try:
        suggestions = await asyncio.to_thread(
            booking_service.get_suggested_dates, facility_id, start, end, exclude_booking_id
        )
        exc.details["suggested_dates"] = [s.to_dict() for s in suggestions]
    except DomainException as suggestion_error:
        logger.warning(f"Could not compute suggested dates: {suggestion_error.message}")
        exc.details["suggested_dates"] = []
    handle_domain_exception(exc)


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("", response_model=List[BookingResponse])
async def get_all_bookings(
    show_deleted: bool = Query(False),
    facility_id: Optional[str] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    """List bookings across users, newest window first."""
    try:
        bookings = await asyncio.to_thread(
            booking_service.get_all_bookings,
            show_deleted=show_deleted,
            facility_id=facility_id,
            status=booking_status.value if booking_status else None,
            skip=skip,
            limit=limit,
        )
        return [BookingResponse.model_validate(b) for b in bookings]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid booking window"},
        409: {"description": "Window taken; details.suggested_dates lists alternatives"},
        422: {"description": "Insufficient inventory"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Create a booking for the caller."""
    try:
        booking = await asyncio.to_thread(booking_service.create_booking, user_id, booking_data)
        return BookingResponse.model_validate(booking)
    except BookingConflictException as e:
        await _raise_conflict_with_suggestions(
            booking_service,
            e,
            booking_data.facility_id,
            booking_data.start_date,
            booking_data.end_date,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/me", response_model=List[BookingResponse])
async def get_my_bookings(
    show_deleted: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    try:
        bookings = await asyncio.to_thread(
            booking_service.get_bookings_for_user, user_id, show_deleted, skip, limit
        )
        return [BookingResponse.model_validate(b) for b in bookings]
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/check-availability", response_model=AvailabilityCheckResponse)
async def check_availability(
    check_data: AvailabilityCheckRequest = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> AvailabilityCheckResponse:
    """Check whether a facility window is free."""
    try:
        conflicts = await asyncio.to_thread(
            booking_service.get_conflicts,
            check_data.facility_id,
            check_data.start_date,
            check_data.end_date,
            check_data.exclude_booking_id,
        )
        return AvailabilityCheckResponse(
            available=not conflicts, conflicts_with=conflicts or None
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/suggested-dates", response_model=SuggestedDatesResponse)
async def get_suggested_dates(
    request_data: SuggestedDatesRequest = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuggestedDatesResponse:
    try:
        suggestions = await asyncio.to_thread(
            booking_service.get_suggested_dates,
            request_data.facility_id,
            request_data.start_date,
            request_data.end_date,
            request_data.exclude_booking_id,
        )
        return SuggestedDatesResponse(
            suggested_dates=[
                SuggestedDateResponse(
                    start_date=s.start, end_date=s.end, duration_days=s.duration_days
                )
                for s in suggestions
            ]
        )
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters - placed last)
# ============================================================================


@router.get("/user/{user_id}", response_model=List[BookingResponse])
async def get_user_bookings(
    user_id: str,
    show_deleted: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    try:
        bookings = await asyncio.to_thread(
            booking_service.get_bookings_for_user, user_id, show_deleted, skip, limit
        )
        return [BookingResponse.model_validate(b) for b in bookings]
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking_details(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    show_deleted: bool = Query(False),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id, show_deleted)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}, 409: {"description": "Conflict"}},
)
async def update_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    update_data: BookingUpdate = Body(...),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Partially update a booking."""
    try:
        booking = await asyncio.to_thread(
            booking_service.update_booking, booking_id, update_data, user_id
        )
        return BookingResponse.model_validate(booking)
    except BookingConflictException as e:
        current = await asyncio.to_thread(booking_service.get_booking, booking_id)
        await _raise_conflict_with_suggestions(
            booking_service,
            e,
            update_data.facility_id or current.facility_id,
            update_data.start_date or current.start_date,
            update_data.end_date or current.end_date,
            exclude_booking_id=booking_id,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}, 422: {"description": "Not active"}},
)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    cancel_data: Optional[BookingCancel] = Body(None),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking,
            booking_id,
            cancel_data.reason if cancel_data else None,
            user_id,
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def delete_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Soft delete a booking and release its inventory."""
    try:
        booking = await asyncio.to_thread(booking_service.delete_booking, booking_id, user_id)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)
