"""
Business-rule failures raised by the booking engine.

Every error is detected before any write happens, so raising one of these
never leaves a half-applied booking behind. The HTTP layer maps them onto
status codes via `status_code` / `error_code` (see app.api.errors).
"""

from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for caller-visible booking failures"""
    status_code = 400
    error_code = "BOOKING_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BookingValidationError(BookingError):
    """Malformed or out-of-range input"""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class LimitExceededError(BookingError):
    """Customer booking limit reached"""
    status_code = 422
    error_code = "LIMIT_EXCEEDED"

    def __init__(self, message: str, rule: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, {"rule": rule, **(details or {})})
        self.rule = rule


class ConflictError(BookingError):
    """Table unavailable or duplicate booking"""
    status_code = 409
    error_code = "CONFLICT"


class NotFoundError(BookingError):
    """Unknown reservation, table, customer or confirmation code"""
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, key: Any):
        super().__init__(f"{entity} {key} not found", {"entity": entity, "key": str(key)})


class InvalidStateTransitionError(BookingError):
    """Action not legal for the reservation's current status"""
    status_code = 409
    error_code = "INVALID_STATE_TRANSITION"

    def __init__(self, current_status: str, action: str):
        super().__init__(
            f"Cannot {action} a reservation in status {current_status}",
            {"current_status": current_status, "action": action},
        )
        self.current_status = current_status
        self.action = action


class AllocationFailedError(BookingError):
    """No table satisfies the request"""
    status_code = 409
    error_code = "ALLOCATION_FAILED"
