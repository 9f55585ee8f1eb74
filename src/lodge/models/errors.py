"""Standard error codes for the lodge backend.

Every failure that reaches a caller carries one of these codes so clients
can branch on a stable, machine-readable kind instead of parsing messages.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Machine-readable error kinds."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE = "INVALID_DATE"
    DISCOUNT_EXCEEDS_PRICE = "DISCOUNT_EXCEEDS_PRICE"

    # Caller errors
    AUTH_REQUIRED = "AUTH_REQUIRED"
    RATE_LIMITED = "RATE_LIMITED"

    # Not found
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    CABIN_NOT_FOUND = "CABIN_NOT_FOUND"
    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"

    # Conflicts
    DATES_UNAVAILABLE = "DATES_UNAVAILABLE"
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    ACTIVE_BOOKINGS = "ACTIVE_BOOKINGS"

    # Infrastructure
    DATABASE_ERROR = "DATABASE_ERROR"


# Human-readable default messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_ERROR: "Validation failed",
    ErrorCode.INVALID_DATE: "Invalid date. Expected an ISO 8601 date or timestamp",
    ErrorCode.DISCOUNT_EXCEEDS_PRICE: "Discount cannot be greater than or equal to the price",
    ErrorCode.AUTH_REQUIRED: "Authentication required",
    ErrorCode.RATE_LIMITED: "Too many requests. Please try again later",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.CABIN_NOT_FOUND: "Cabin not found",
    ErrorCode.CUSTOMER_NOT_FOUND: "Customer not found",
    ErrorCode.DATES_UNAVAILABLE: "The cabin is already booked for the requested dates",
    ErrorCode.BOOKING_CONFLICT: "Another booking for this cabin was created concurrently",
    ErrorCode.ACTIVE_BOOKINGS: "Cannot delete cabins with active bookings",
    ErrorCode.DATABASE_ERROR: "Database operation failed",
}


class ErrorResponse(BaseModel):
    """JSON envelope returned for every failed request."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class LodgeError(Exception):
    """Exception raised by lodge services.

    Converted to an ``ErrorResponse`` at the HTTP boundary.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to the error envelope."""
        return ErrorResponse(
            error=self.message,
            error_code=self.code,
            details=self.details,
        )
