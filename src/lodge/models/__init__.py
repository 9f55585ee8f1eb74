"""Pydantic models for lodge data entities."""

from .availability import BookingStats, CabinAvailability, CabinStats, DateInterval
from .cabin import (
    BulkDeleteResult,
    BulkUpdateResult,
    Cabin,
    CabinBulkRequest,
    CabinCreate,
    CabinUpdate,
)
from .common import CamelModel, Money, Pagination, SuccessResponse
from .customer import Customer, CustomerStats
from .enums import CabinStatus, ReservationStatus
from .errors import ErrorCode, ErrorResponse, LodgeError
from .reservation import (
    Reservation,
    ReservationCreate,
    ReservationPage,
    ReservationStatusUpdate,
    ReservationUpdate,
)

__all__ = [
    # Enums
    "CabinStatus",
    "ReservationStatus",
    # Common
    "CamelModel",
    "Money",
    "Pagination",
    "SuccessResponse",
    # Errors
    "ErrorCode",
    "ErrorResponse",
    "LodgeError",
    # Reservation
    "Reservation",
    "ReservationCreate",
    "ReservationPage",
    "ReservationStatusUpdate",
    "ReservationUpdate",
    # Cabin
    "Cabin",
    "CabinCreate",
    "CabinUpdate",
    "CabinBulkRequest",
    "BulkDeleteResult",
    "BulkUpdateResult",
    # Customer
    "Customer",
    "CustomerStats",
    # Availability and stats
    "BookingStats",
    "CabinAvailability",
    "CabinStats",
    "DateInterval",
]
