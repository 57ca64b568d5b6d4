"""Application-wide constants for the FacilityHub booking core."""

from __future__ import annotations

API_TITLE = "FacilityHub Booking API"
API_DESCRIPTION = "Facility reservations with conflict detection and inventory claims"
API_VERSION = "0.1.0"
API_V1_PREFIX = "/api/v1"

# Header set by the upstream auth gateway
USER_ID_HEADER = "X-User-Id"

# Error messages surfaced to callers
BOOKING_CONFLICT_MESSAGE = "overlapping time for this facility"
FACILITY_BUSY_MESSAGE = "Another booking for this facility is being processed, please retry"

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000

# Text constraints
MAX_NOTES_LENGTH = 2000
MAX_REASON_LENGTH = 255

# Inventory history reasons
HISTORY_REASON_BOOKING_RESERVE = "booking_reserve"
HISTORY_REASON_BOOKING_RELEASE = "booking_release"
HISTORY_REASON_RETURN = "return"
HISTORY_REASON_INITIAL_STOCK = "initial_stock"
