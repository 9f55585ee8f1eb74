"""Cabin models for rentable units."""

import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import Field, computed_field

from lodge.models.common import CamelModel, Money
from lodge.models.enums import CabinStatus

MAX_BULK_ITEMS = 50
IMAGE_URL_PATTERN = r"^https?://.+\..+"


class Cabin(CamelModel):
    """A rentable cabin."""

    cabin_id: str = Field(..., description="Unique cabin ID")
    name: str = Field(..., max_length=100)
    description: str = Field(default="", max_length=1000)
    capacity: int = Field(..., ge=1, le=20)
    price: Money = Field(..., ge=0, description="Nightly price")
    discount: Money = Field(default=Decimal(0), ge=0, description="Nightly discount")
    image: str | None = Field(default=None)
    amenities: list[str] = Field(default_factory=list)
    status: CabinStatus = Field(default=CabinStatus.AVAILABLE)
    booking_version: int = Field(default=0, ge=0, exclude=True)
    created_at: dt.datetime
    updated_at: dt.datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def discounted_price(self) -> Money:
        """Nightly price after discount."""
        return self.price - self.discount


class CabinCreate(CamelModel):
    """Data required to create a cabin."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    capacity: int = Field(..., ge=1, le=20)
    price: Decimal = Field(..., ge=0)
    discount: Decimal = Field(default=Decimal(0), ge=0)
    image: str | None = Field(default=None, pattern=IMAGE_URL_PATTERN)
    amenities: list[str] = Field(default_factory=list)
    status: CabinStatus = Field(default=CabinStatus.AVAILABLE)


class CabinUpdate(CamelModel):
    """Fields that can be updated for a cabin. Omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    capacity: int | None = Field(default=None, ge=1, le=20)
    price: Decimal | None = Field(default=None, ge=0)
    discount: Decimal | None = Field(default=None, ge=0)
    image: str | None = Field(default=None, pattern=IMAGE_URL_PATTERN)
    amenities: list[str] | None = None
    status: CabinStatus | None = None


class CabinBulkRequest(CamelModel):
    """Bulk action over several cabins."""

    action: Literal["delete", "update-discount"]
    ids: list[str] = Field(..., min_length=1, max_length=MAX_BULK_ITEMS)
    discount: Decimal | None = None


class BulkDeleteResult(CamelModel):
    deleted_count: int = Field(..., ge=0)


class BulkUpdateResult(CamelModel):
    modified_count: int = Field(..., ge=0)
