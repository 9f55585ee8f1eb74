"""Business logic services for the lodge backend."""

from .availability import AvailabilityService, overlaps
from .booking_stats import BookingStatsService, compute_booking_stats
from .bookings import BookingService
from .cabin_stats import CabinStatsService, compute_cabin_stats
from .cabins import CabinService
from .customer_stats import CustomerStatsReconciler, ReconcileResult, aggregate_customer_stats
from .customers import CustomerService
from .dynamodb import DynamoDBService

__all__ = [
    "AvailabilityService",
    "BookingService",
    "BookingStatsService",
    "CabinService",
    "CabinStatsService",
    "CustomerService",
    "CustomerStatsReconciler",
    "DynamoDBService",
    "ReconcileResult",
    "aggregate_customer_stats",
    "compute_booking_stats",
    "compute_cabin_stats",
    "overlaps",
]
