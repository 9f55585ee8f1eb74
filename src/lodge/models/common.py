"""Shared model building blocks.

The HTTP surface speaks camelCase JSON while Python code uses snake_case,
so every domain model derives from ``CamelModel``.
"""

from decimal import Decimal
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def _money_to_json(value: Decimal) -> int | float:
    """Render whole amounts as integers and the rest as floats."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Stored as DynamoDB numbers (Decimal), rendered as plain JSON numbers
Money = Annotated[
    Decimal,
    PlainSerializer(_money_to_json, return_type=int | float, when_used="json"),
]


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success envelope: ``{"success": true, "data": ...}``."""

    success: bool = True
    data: T


class Pagination(CamelModel):
    """Page metadata for list endpoints."""

    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    total_bookings: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Compute page metadata for ``total`` items."""
        total_pages = -(-total // limit)
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_bookings=total,
            limit=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
