"""
Error kinds surfaced to API callers.

None of these are fatal: the API maps each one to an HTTP status and the
service keeps running.
"""

from typing import Optional


class WalkPaceError(Exception):
    """Base class for categorized errors."""

    code: str = "error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidInputError(WalkPaceError):
    """Missing or invalid user input (e.g. no start/end address)."""

    code = "INVALID_INPUT"


class TrackingStateError(WalkPaceError):
    """Operation not allowed in the current tracking state."""

    code = "INVALID_STATE"


# Provider status -> user-facing explanation
DIRECTIONS_MESSAGES = {
    "NOT_FOUND": "One or more locations could not be found.",
    "ZERO_RESULTS": "No walking route could be found between these locations.",
    "MAX_WAYPOINTS_EXCEEDED": "Too many waypoints in the request.",
    "INVALID_REQUEST": "Invalid request.",
    "OVER_QUERY_LIMIT": "Query limit exceeded. Please try again later.",
    "REQUEST_DENIED": "Request denied. Check your API key.",
    "UNKNOWN_ERROR": "Server error. Please try again.",
}


class DirectionsError(WalkPaceError):
    """The directions provider did not return a usable route."""

    def __init__(self, status: str):
        detail = DIRECTIONS_MESSAGES.get(status, status)
        super().__init__(f"Could not calculate route: {detail}", code=status)
        self.status = status


# Geolocation failure codes (W3C PositionError numbering)
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

GEOLOCATION_MESSAGES = {
    PERMISSION_DENIED: (
        "PERMISSION_DENIED",
        "Location access denied. Please enable location permissions and try again.",
    ),
    POSITION_UNAVAILABLE: (
        "POSITION_UNAVAILABLE",
        "Location information unavailable. Check your GPS signal.",
    ),
    TIMEOUT: (
        "TIMEOUT",
        "Location request timed out. Please try again.",
    ),
}


class GeolocationError(WalkPaceError):
    """Geolocation unavailable, denied or timed out. Forces tracking to stop."""

    def __init__(self, error_code: Optional[int] = None):
        code, detail = GEOLOCATION_MESSAGES.get(
            error_code, ("UNKNOWN", "Unknown error occurred.")
        )
        super().__init__(f"Location tracking error: {detail}", code=code)
        self.error_code = error_code
