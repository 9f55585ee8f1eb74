"""API-specific request/response models.

Domain models (Reservation, Cabin, Customer, ...) are in lodge.models and are
reused here. This package holds HTTP-layer shapes only.

Modules:
- common: Validation error details and small response bodies
"""

from .common import BookingDeleted, HealthStatus, ValidationErrorDetail

__all__ = ["BookingDeleted", "HealthStatus", "ValidationErrorDetail"]
