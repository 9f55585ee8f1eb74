"""Enumeration types for lodge data models."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Status of a reservation.

    No transition rules are enforced; any handler may set any status.
    """

    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"


class CabinStatus(str, Enum):
    """Operational status of a cabin."""

    AVAILABLE = "available"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"

