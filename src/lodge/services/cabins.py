"""Cabin management service, including bulk actions."""

import datetime as dt
import uuid
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Attr

from lodge.models import (
    BulkDeleteResult,
    BulkUpdateResult,
    Cabin,
    CabinCreate,
    CabinUpdate,
    ErrorCode,
    LodgeError,
)
from lodge.models.enums import ReservationStatus
from lodge.services.dynamodb import CABIN_INDEX, CABINS_TABLE, RESERVATIONS_TABLE
from lodge.utils.dates import format_timestamp
from lodge.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


def item_to_cabin(item: dict[str, Any]) -> Cabin:
    """Convert DynamoDB item to Cabin model."""
    return Cabin(
        cabin_id=item["cabin_id"],
        name=item["name"],
        description=item.get("description", ""),
        capacity=int(item["capacity"]),
        price=Decimal(item["price"]),
        discount=Decimal(item.get("discount", 0)),
        image=item.get("image"),
        amenities=list(item.get("amenities", [])),
        status=item.get("status", "available"),
        booking_version=int(item.get("booking_version", 0)),
        created_at=item["created_at"],
        updated_at=item["updated_at"],
    )


def _format_amount(value: Decimal) -> str:
    return f"${value.normalize():f}"


class CabinService:
    """Service for cabin CRUD and bulk operations."""

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get_cabin(self, cabin_id: str) -> Cabin:
        """Get a cabin by ID.

        Raises:
            LodgeError: CABIN_NOT_FOUND if absent
        """
        item = self.db.get_item(CABINS_TABLE, {"cabin_id": cabin_id})
        if not item:
            raise LodgeError(ErrorCode.CABIN_NOT_FOUND, details={"cabin_id": cabin_id})
        return item_to_cabin(item)

    def list_cabins(self) -> list[Cabin]:
        """List all cabins ordered by name."""
        cabins = [item_to_cabin(item) for item in self.db.scan(CABINS_TABLE)]
        return sorted(cabins, key=lambda c: c.name.lower())

    def create_cabin(self, data: CabinCreate) -> Cabin:
        """Create a cabin.

        Raises:
            LodgeError: DISCOUNT_EXCEEDS_PRICE if discount >= price
        """
        self._check_discount(data.price, data.discount)

        now = format_timestamp(dt.datetime.now(dt.UTC))
        item: dict[str, Any] = {
            "cabin_id": uuid.uuid4().hex,
            "name": data.name,
            "description": data.description,
            "capacity": data.capacity,
            "price": data.price,
            "discount": data.discount,
            "image": data.image,
            "amenities": data.amenities,
            "status": data.status.value,
            "booking_version": 0,
            "created_at": now,
            "updated_at": now,
        }
        item = {k: v for k, v in item.items() if v is not None}
        self.db.put_item(CABINS_TABLE, item, condition_expression="attribute_not_exists(cabin_id)")

        logger.info(
            "cabin_created", extra={"cabin_id": item["cabin_id"], "cabin_name": data.name}
        )
        return item_to_cabin(item)

    def update_cabin(self, cabin_id: str, data: CabinUpdate) -> Cabin:
        """Update the provided fields of a cabin.

        Discount must stay below price after the merge.

        Raises:
            LodgeError: CABIN_NOT_FOUND or DISCOUNT_EXCEEDS_PRICE
        """
        current = self.get_cabin(cabin_id)

        new_price = data.price if data.price is not None else current.price
        new_discount = data.discount if data.discount is not None else current.discount
        self._check_discount(new_price, new_discount)

        update_fields: dict[str, Any] = {}
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            update_fields[field] = value.value if isinstance(value, Enum) else value
        update_fields["updated_at"] = format_timestamp(dt.datetime.now(dt.UTC))

        update_parts = []
        expression_values = {}
        expression_names = {}
        for idx, (field, value) in enumerate(update_fields.items()):
            update_parts.append(f"#n{idx} = :v{idx}")
            expression_values[f":v{idx}"] = value
            expression_names[f"#n{idx}"] = field

        result = self.db.update_item(
            table=CABINS_TABLE,
            key={"cabin_id": cabin_id},
            update_expression="SET " + ", ".join(update_parts),
            expression_attribute_values=expression_values,
            expression_attribute_names=expression_names,
            condition_expression="attribute_exists(cabin_id)",
        )
        if result is None:
            raise LodgeError(ErrorCode.CABIN_NOT_FOUND, details={"cabin_id": cabin_id})

        logger.info(
            "cabin_updated",
            extra={"cabin_id": cabin_id, "updated_fields": sorted(update_fields)},
        )
        return item_to_cabin(result)

    def bulk_delete(self, ids: list[str]) -> BulkDeleteResult:
        """Delete several cabins unless any of them still has active bookings.

        A booking is active unless it is cancelled or checked out.

        Raises:
            LodgeError: ACTIVE_BOOKINGS naming the blocked cabins
        """
        ids = list(dict.fromkeys(ids))
        active = Attr("status").ne(ReservationStatus.CANCELLED.value) & Attr("status").ne(
            ReservationStatus.CHECKED_OUT.value
        )

        blocked = [
            cabin_id
            for cabin_id in ids
            if self.db.query_by_gsi(
                table=RESERVATIONS_TABLE,
                index_name=CABIN_INDEX,
                partition_key_name="cabin_id",
                partition_key_value=cabin_id,
                filter_expression=active,
            )
        ]
        if blocked:
            names = {c.cabin_id: c.name for c in self._load(blocked)}
            labels = [names.get(cabin_id, "Unknown") for cabin_id in blocked]
            raise LodgeError(
                ErrorCode.ACTIVE_BOOKINGS,
                message=f"Cannot delete cabins with active bookings: {', '.join(labels)}",
                details={"cabin_ids": blocked},
            )

        deleted = sum(
            1
            for cabin_id in ids
            if self.db.delete_item(
                CABINS_TABLE,
                {"cabin_id": cabin_id},
                condition_expression="attribute_exists(cabin_id)",
            )
        )
        logger.info("cabins_bulk_deleted", extra={"requested": len(ids), "deleted": deleted})
        return BulkDeleteResult(deleted_count=deleted)

    def bulk_update_discount(self, ids: list[str], discount: Decimal | None) -> BulkUpdateResult:
        """Set the same discount on several cabins.

        Nothing is written if the discount reaches the price of any selected cabin.

        Raises:
            LodgeError: VALIDATION_ERROR for a missing or negative discount,
                DISCOUNT_EXCEEDS_PRICE listing the offending cabins
        """
        if discount is None:
            raise LodgeError(ErrorCode.VALIDATION_ERROR, message="discount (number) is required")
        if discount < 0:
            raise LodgeError(
                ErrorCode.VALIDATION_ERROR,
                message="Discount must be a non-negative number",
            )

        ids = list(dict.fromkeys(ids))
        cabins = self._load(ids)
        invalid = [c for c in cabins if discount >= c.price]
        if invalid:
            names = [f"{c.name} ({_format_amount(c.price)})" for c in invalid]
            raise LodgeError(
                ErrorCode.DISCOUNT_EXCEEDS_PRICE,
                message=(
                    f"Discount ({_format_amount(discount)}) exceeds or equals price for: "
                    f"{', '.join(names)}"
                ),
                details={"cabin_ids": [c.cabin_id for c in invalid]},
            )

        now = format_timestamp(dt.datetime.now(dt.UTC))
        modified = 0
        for cabin in cabins:
            result = self.db.update_item(
                table=CABINS_TABLE,
                key={"cabin_id": cabin.cabin_id},
                update_expression="SET #discount = :discount, updated_at = :now",
                expression_attribute_values={":discount": discount, ":now": now},
                expression_attribute_names={"#discount": "discount"},
                condition_expression="attribute_exists(cabin_id)",
            )
            if result is not None:
                modified += 1

        logger.info(
            "cabins_bulk_discount_updated",
            extra={"requested": len(ids), "modified": modified, "discount": str(discount)},
        )
        return BulkUpdateResult(modified_count=modified)

    def _load(self, ids: list[str]) -> list[Cabin]:
        items = self.db.batch_get(CABINS_TABLE, [{"cabin_id": cabin_id} for cabin_id in ids])
        return [item_to_cabin(item) for item in items]

    @staticmethod
    def _check_discount(price: Decimal, discount: Decimal) -> None:
        if discount >= price:
            raise LodgeError(
                ErrorCode.DISCOUNT_EXCEEDS_PRICE,
                details={"price": str(price), "discount": str(discount)},
            )
