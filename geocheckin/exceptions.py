from typing import Any, Dict, Optional


class AttendanceError(Exception):
    """Base exception for rejected attendance operations."""

    code = "server_error"
    status_code = 500
    message = "An unexpected error occurred. Please try again later."

    def __init__(self, message: Optional[str] = None, **context: Any):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.context}


class ParameterError(AttendanceError):
    code = "missing_params"
    status_code = 400
    message = "Required parameters are missing"


class MissingSessionIdError(ParameterError):
    code = "missing_sessionId"
    message = "sessionId required"


class InvalidSessionError(AttendanceError):
    code = "invalid_session"
    status_code = 404
    message = "Session not found"


class SessionExpiredError(AttendanceError):
    code = "session_expired"
    status_code = 410
    message = "Session has expired"


class LocationRequiredError(AttendanceError):
    code = "location_required"
    status_code = 400
    message = "A location with numeric latitude and longitude is required"


class SessionMissingGeofenceError(AttendanceError):
    code = "session_has_no_location"
    status_code = 409
    message = "Session has no location to verify against"


class OutOfRangeError(AttendanceError):
    code = "out_of_range"
    status_code = 403
    message = "Location is outside of the session area"

    def __init__(self, distance_meters: float, threshold: float):
        super().__init__(distanceMeters=distance_meters, threshold=threshold)
        self.distance_meters = distance_meters
        self.threshold = threshold


class DuplicateCheckInError(AttendanceError):
    """Raised by the store when a second present record would be written."""

    code = "already_checked_in"
    status_code = 200
    message = "already checked-in"


class StoreError(AttendanceError):
    code = "server_error"
    status_code = 500
    message = "Storage operation failed"
