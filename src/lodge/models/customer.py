"""Customer aggregate models.

Customer records are a denormalized cache keyed by the identity-provider
subject. The reservations table is the source of truth.
"""

import datetime as dt
from decimal import Decimal

from pydantic import Field

from lodge.models.common import CamelModel, Money


class CustomerStats(CamelModel):
    """Aggregates computed from a customer's reservations."""

    customer_id: str = Field(..., description="Identity-provider subject")
    total_bookings: int = Field(default=0, ge=0, description="All reservations, cancelled included")
    total_spent: Money = Field(default=Decimal(0), ge=0, description="Sum over non-cancelled")
    last_booking_date: dt.datetime | None = Field(
        default=None, description="Creation time of the most recent reservation"
    )


class Customer(CustomerStats):
    """Stored customer aggregate record."""

    created_at: dt.datetime | None = Field(default=None)
