"""Reservation (booking) models."""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import Field, field_validator, model_validator

from lodge.models.common import CamelModel, Money, Pagination
from lodge.models.enums import ReservationStatus
from lodge.utils.dates import parse_timestamp


def _coerce_timestamp(value: Any) -> Any:
    """Parse ISO strings with the storage rules (bare dates are UTC midnight)."""
    if isinstance(value, str):
        return parse_timestamp(value)
    if isinstance(value, dt.datetime) and value.tzinfo is None:
        return value.astimezone()
    return value


class Reservation(CamelModel):
    """One stay of a customer in a cabin.

    ``cabin_price`` is a snapshot taken at booking time, so later cabin price
    changes never rewrite history.
    """

    reservation_id: str = Field(..., description="Unique reservation ID")
    cabin_id: str = Field(..., description="Booked cabin")
    customer_id: str = Field(..., description="Identity-provider subject of the customer")
    check_in: dt.datetime = Field(..., description="Check-in instant")
    check_out: dt.datetime = Field(..., description="Check-out instant (exclusive)")
    num_nights: int = Field(..., ge=1, description="Nights between check-in and check-out")
    num_guests: int = Field(..., ge=1, description="Number of guests")
    cabin_price: Money = Field(..., ge=0, description="Per-night price snapshot")
    extras_price: Money = Field(default=Decimal(0), ge=0, description="Extras total")
    total_price: Money = Field(..., ge=0, description="Total price of the stay")
    status: ReservationStatus = Field(default=ReservationStatus.UNCONFIRMED)
    is_paid: bool = Field(default=False)
    observations: str | None = Field(default=None, max_length=1000)
    created_at: dt.datetime = Field(..., description="Creation timestamp")
    updated_at: dt.datetime = Field(..., description="Last update timestamp")

    @field_validator("check_in", "check_out", "created_at", "updated_at", mode="before")
    @classmethod
    def _parse_timestamps(cls, value: Any) -> Any:
        return _coerce_timestamp(value)


class ReservationCreate(CamelModel):
    """Data required to create a reservation.

    ``customer_id`` defaults to the authenticated caller when omitted.
    """

    cabin_id: str = Field(..., min_length=1)
    customer_id: str | None = Field(default=None, min_length=1)
    check_in: dt.datetime
    check_out: dt.datetime
    num_guests: int = Field(..., ge=1)
    extras_price: Decimal = Field(default=Decimal(0), ge=0)
    status: ReservationStatus = Field(default=ReservationStatus.UNCONFIRMED)
    is_paid: bool = False
    observations: str | None = Field(default=None, max_length=1000)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return _coerce_timestamp(value)

    @model_validator(mode="after")
    def _check_out_after_check_in(self) -> "ReservationCreate":
        if self.check_out <= self.check_in:
            raise ValueError("Check-out date must be after check-in date")
        return self


class ReservationUpdate(CamelModel):
    """Editable fields of a reservation. Omitted fields keep their value."""

    check_in: dt.datetime | None = None
    check_out: dt.datetime | None = None
    num_guests: int | None = Field(default=None, ge=1)
    extras_price: Decimal | None = Field(default=None, ge=0)
    is_paid: bool | None = None
    observations: str | None = Field(default=None, max_length=1000)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return _coerce_timestamp(value)


class ReservationStatusUpdate(CamelModel):
    """Body of a status change request."""

    status: ReservationStatus


class ReservationPage(CamelModel):
    """One page of reservations."""

    items: list[Reservation]
    pagination: Pagination
