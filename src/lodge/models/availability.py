"""Availability and dashboard statistics models."""

from decimal import Decimal

from pydantic import Field

from lodge.models.common import CamelModel, Money


class DateInterval(CamelModel):
    """Calendar-date interval, ``end`` exclusive. Dates are ``YYYY-MM-DD``."""

    start: str = Field(..., examples=["2027-06-01"])
    end: str = Field(..., examples=["2027-06-04"])


class CabinAvailability(CamelModel):
    """Booked ranges of a cabin within a query range."""

    cabin_id: str
    unavailable_dates: list[DateInterval] = Field(
        ...,
        description="Raw reservation ranges overlapping the query, not merged",
    )
    query_range: DateInterval


class BookingStats(CamelModel):
    """Operational counters for the dashboard."""

    today_check_ins: int = Field(default=0, ge=0)
    today_check_outs: int = Field(default=0, ge=0)
    checked_in: int = Field(default=0, ge=0)
    unconfirmed: int = Field(default=0, ge=0)


class CabinStats(CamelModel):
    """Fleet summary for the cabins page. ``averagePrice`` is rounded to whole units."""

    total_cabins: int = Field(default=0, ge=0)
    total_capacity: int = Field(default=0, ge=0)
    average_price: Money = Field(default=Decimal(0), ge=0)
    cabins_with_discount: int = Field(default=0, ge=0)
    available_cabins: int = Field(default=0, ge=0)
    maintenance_cabins: int = Field(default=0, ge=0)
    inactive_cabins: int = Field(default=0, ge=0)
