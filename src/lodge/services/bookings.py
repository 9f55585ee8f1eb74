"""Booking service for reservation management.

Creating or editing a reservation closes the check-then-insert race with an
optimistic version counter on the cabin: the overlap check reads the cabin's
``booking_version`` and the reservation is written in the same transaction
that bumps it, conditioned on the version being unchanged.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Attr

from lodge.models import (
    Cabin,
    ErrorCode,
    LodgeError,
    Pagination,
    Reservation,
    ReservationCreate,
    ReservationPage,
    ReservationUpdate,
)
from lodge.models.enums import ReservationStatus
from lodge.services.cabins import item_to_cabin
from lodge.services.dynamodb import CABINS_TABLE, RESERVATIONS_TABLE
from lodge.utils.dates import count_nights, format_timestamp
from lodge.utils.logging import get_logger

if TYPE_CHECKING:
    from .availability import AvailabilityService
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

# Attempts before a version conflict is reported to the caller
MAX_WRITE_ATTEMPTS = 3


def generate_reservation_id() -> str:
    """Generate a unique reservation ID."""
    year = dt.datetime.now(dt.UTC).year
    unique_part = uuid.uuid4().hex[:8].upper()
    return f"RES-{year}-{unique_part}"


def item_to_reservation(item: dict[str, Any]) -> Reservation:
    """Convert DynamoDB item to Reservation model."""
    data = dict(item)
    for field in ("num_nights", "num_guests"):
        data[field] = int(data[field])
    return Reservation.model_validate(data)


def reservation_to_item(reservation: Reservation) -> dict[str, Any]:
    """Convert Reservation model to a DynamoDB item."""
    item = reservation.model_dump(mode="python")
    for field in ("check_in", "check_out", "created_at", "updated_at"):
        item[field] = format_timestamp(item[field])
    item["status"] = reservation.status.value
    return {k: v for k, v in item.items() if v is not None}


class BookingService:
    """Service for creating and managing reservations."""

    def __init__(
        self,
        db: "DynamoDBService",
        availability: "AvailabilityService",
    ) -> None:
        """Initialize booking service.

        Args:
            db: DynamoDB service instance
            availability: Availability service used for overlap checks
        """
        self.db = db
        self.availability = availability

    def _load_cabin(self, cabin_id: str) -> Cabin:
        item = self.db.get_item(CABINS_TABLE, {"cabin_id": cabin_id})
        if not item:
            raise LodgeError(ErrorCode.CABIN_NOT_FOUND, details={"cabin_id": cabin_id})
        return item_to_cabin(item)

    @staticmethod
    def _check_capacity(cabin: Cabin, num_guests: int) -> None:
        if num_guests > cabin.capacity:
            raise LodgeError(
                ErrorCode.VALIDATION_ERROR,
                message=f"Cabin capacity is {cabin.capacity} guests",
                details={"num_guests": num_guests, "capacity": cabin.capacity},
            )

    def _check_free(
        self,
        cabin_id: str,
        check_in: dt.datetime,
        check_out: dt.datetime,
        exclude_reservation_id: str | None = None,
    ) -> None:
        conflicts = self.availability.find_overlapping(
            cabin_id, check_in, check_out, exclude_reservation_id=exclude_reservation_id
        )
        if conflicts:
            raise LodgeError(
                ErrorCode.DATES_UNAVAILABLE,
                details={"conflicts": [c["reservation_id"] for c in conflicts]},
            )

    def create_booking(self, data: ReservationCreate, customer_id: str) -> Reservation:
        """Create a reservation after checking the cabin is free.

        Args:
            data: Reservation request
            customer_id: Authenticated caller, used when data names no customer

        Returns:
            The stored Reservation

        Raises:
            LodgeError: CABIN_NOT_FOUND, VALIDATION_ERROR (capacity),
                DATES_UNAVAILABLE (overlap) or BOOKING_CONFLICT (lost race)
        """
        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            cabin = self._load_cabin(data.cabin_id)
            self._check_capacity(cabin, data.num_guests)
            if data.status != ReservationStatus.CANCELLED:
                self._check_free(data.cabin_id, data.check_in, data.check_out)

            now = dt.datetime.now(dt.UTC)
            num_nights = count_nights(data.check_in, data.check_out)
            cabin_price = cabin.price - cabin.discount
            reservation = Reservation(
                reservation_id=generate_reservation_id(),
                cabin_id=data.cabin_id,
                customer_id=data.customer_id or customer_id,
                check_in=data.check_in,
                check_out=data.check_out,
                num_nights=num_nights,
                num_guests=data.num_guests,
                cabin_price=cabin_price,
                extras_price=data.extras_price,
                total_price=cabin_price * num_nights + data.extras_price,
                status=data.status,
                is_paid=data.is_paid,
                observations=data.observations,
                created_at=now,
                updated_at=now,
            )

            if self._write(reservation, cabin.booking_version, is_new=True):
                logger.info(
                    "booking_created",
                    extra={
                        "reservation_id": reservation.reservation_id,
                        "cabin_id": reservation.cabin_id,
                        "num_nights": num_nights,
                    },
                )
                return reservation

            logger.warning(
                "booking_version_conflict",
                extra={"cabin_id": data.cabin_id, "attempt": attempt},
            )

        raise LodgeError(ErrorCode.BOOKING_CONFLICT, details={"cabin_id": data.cabin_id})

    def update_booking(self, reservation_id: str, data: ReservationUpdate) -> Reservation:
        """Edit dates, guests, extras, payment flag or observations.

        The stay is re-checked against the other reservations of the cabin and
        ``num_nights``/``total_price`` are recomputed from the stored
        ``cabin_price`` snapshot.

        Raises:
            LodgeError: BOOKING_NOT_FOUND, VALIDATION_ERROR (dates or capacity),
                DATES_UNAVAILABLE (overlap) or BOOKING_CONFLICT (lost race)
        """
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field == "observations"
        }

        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            current = self.get_booking(reservation_id)
            edited = current.model_copy(update=changes)
            if edited.check_out <= edited.check_in:
                raise LodgeError(
                    ErrorCode.VALIDATION_ERROR,
                    message="Check-out date must be after check-in date",
                    details={"reservation_id": reservation_id},
                )

            cabin = self._load_cabin(edited.cabin_id)
            self._check_capacity(cabin, edited.num_guests)
            if edited.status != ReservationStatus.CANCELLED:
                self._check_free(
                    edited.cabin_id,
                    edited.check_in,
                    edited.check_out,
                    exclude_reservation_id=reservation_id,
                )

            num_nights = count_nights(edited.check_in, edited.check_out)
            edited = edited.model_copy(
                update={
                    "num_nights": num_nights,
                    "total_price": edited.cabin_price * num_nights + edited.extras_price,
                    "updated_at": dt.datetime.now(dt.UTC),
                }
            )

            if self._write(edited, cabin.booking_version, is_new=False):
                logger.info(
                    "booking_updated",
                    extra={
                        "reservation_id": reservation_id,
                        "fields": sorted(changes),
                        "num_nights": num_nights,
                    },
                )
                return edited

            logger.warning(
                "booking_version_conflict",
                extra={"cabin_id": edited.cabin_id, "attempt": attempt},
            )

        raise LodgeError(ErrorCode.BOOKING_CONFLICT, details={"reservation_id": reservation_id})

    def _write(self, reservation: Reservation, expected_version: int, is_new: bool) -> bool:
        """Write the reservation and bump the cabin version in one transaction.

        New reservations must not exist yet; edits must still exist.
        """
        condition = "attribute_exists(cabin_id) AND "
        if expected_version == 0:
            condition += "(attribute_not_exists(booking_version) OR booking_version = :expected)"
        else:
            condition += "booking_version = :expected"
        put_condition = (
            "attribute_not_exists(reservation_id)" if is_new else "attribute_exists(reservation_id)"
        )

        return self.db.transact_write(
            [
                {
                    "Put": {
                        "TableName": self.db.table_name(RESERVATIONS_TABLE),
                        "Item": self.db.serialize_item(reservation_to_item(reservation)),
                        "ConditionExpression": put_condition,
                    }
                },
                {
                    "Update": {
                        "TableName": self.db.table_name(CABINS_TABLE),
                        "Key": self.db.serialize_item({"cabin_id": reservation.cabin_id}),
                        "UpdateExpression": "SET booking_version = :next",
                        "ConditionExpression": condition,
                        "ExpressionAttributeValues": self.db.serialize_item(
                            {":expected": expected_version, ":next": expected_version + 1}
                        ),
                    }
                },
            ]
        )

    def get_booking(self, reservation_id: str) -> Reservation:
        """Get a reservation by ID.

        Raises:
            LodgeError: BOOKING_NOT_FOUND if absent
        """
        item = self.db.get_item(RESERVATIONS_TABLE, {"reservation_id": reservation_id})
        if not item:
            raise LodgeError(
                ErrorCode.BOOKING_NOT_FOUND,
                details={"reservation_id": reservation_id},
            )
        return item_to_reservation(item)

    def list_bookings(
        self,
        status: ReservationStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> ReservationPage:
        """List reservations, most recent check-in first.

        Args:
            status: Only return reservations in this status
            page: 1-based page number
            limit: Page size

        Returns:
            ReservationPage with items and pagination metadata
        """
        filter_expression = Attr("status").eq(status.value) if status else None
        reservations = [
            item_to_reservation(item)
            for item in self.db.scan(RESERVATIONS_TABLE, filter_expression=filter_expression)
        ]
        reservations.sort(key=lambda r: r.check_in, reverse=True)

        skip = (page - 1) * limit
        return ReservationPage(
            items=reservations[skip : skip + limit],
            pagination=Pagination.build(page=page, limit=limit, total=len(reservations)),
        )

    def update_status(self, reservation_id: str, status: ReservationStatus) -> Reservation:
        """Set the status of a reservation.

        Any status may follow any other.

        Raises:
            LodgeError: BOOKING_NOT_FOUND if absent
        """
        result = self.db.update_item(
            table=RESERVATIONS_TABLE,
            key={"reservation_id": reservation_id},
            update_expression="SET #status = :status, updated_at = :now",
            expression_attribute_values={
                ":status": status.value,
                ":now": format_timestamp(dt.datetime.now(dt.UTC)),
            },
            expression_attribute_names={"#status": "status"},
            condition_expression="attribute_exists(reservation_id)",
        )
        if result is None:
            raise LodgeError(
                ErrorCode.BOOKING_NOT_FOUND,
                details={"reservation_id": reservation_id},
            )

        logger.info(
            "booking_status_updated",
            extra={"reservation_id": reservation_id, "status": status.value},
        )
        return item_to_reservation(result)

    def delete_booking(self, reservation_id: str) -> None:
        """Delete a reservation.

        Raises:
            LodgeError: BOOKING_NOT_FOUND if absent
        """
        deleted = self.db.delete_item(
            RESERVATIONS_TABLE,
            {"reservation_id": reservation_id},
            condition_expression="attribute_exists(reservation_id)",
        )
        if not deleted:
            raise LodgeError(
                ErrorCode.BOOKING_NOT_FOUND,
                details={"reservation_id": reservation_id},
            )
        logger.info("booking_deleted", extra={"reservation_id": reservation_id})
