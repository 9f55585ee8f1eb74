"""Shared API response models."""

from pydantic import BaseModel, Field

from lodge.models import CamelModel


class ValidationErrorDetail(BaseModel):
    """Detail of a single validation error, listed under ``details.errors``."""

    field: str = Field(..., description="Dotted path of the offending field", examples=["checkOut"])
    message: str = Field(..., examples=["Field required"])


class BookingDeleted(CamelModel):
    reservation_id: str


class HealthStatus(BaseModel):
    """Liveness payload."""

    status: str = Field(default="ok", examples=["ok"])
    timestamp: str
    service: str = "lodge-api"
