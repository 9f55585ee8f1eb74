"""Availability service: booked date ranges of a cabin."""

import datetime as dt
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from lodge.models import CabinAvailability, DateInterval, ErrorCode, LodgeError
from lodge.models.enums import ReservationStatus
from lodge.services.dynamodb import CABIN_INDEX, RESERVATIONS_TABLE
from lodge.utils.dates import (
    add_months,
    ceil_to_second,
    format_timestamp,
    parse_timestamp,
    to_date_string,
)
from lodge.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

DEFAULT_WINDOW_MONTHS = 6


def overlaps(
    check_in: dt.datetime,
    check_out: dt.datetime,
    range_start: dt.datetime,
    range_end: dt.datetime,
) -> bool:
    """Half-open overlap test of ``[check_in, check_out)`` and ``[range_start, range_end)``.

    A check-out and a check-in on the same instant do not overlap.
    """
    return check_in < range_end and check_out > range_start


class AvailabilityService:
    """Finds the reservations that make a cabin unavailable."""

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize availability service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def find_overlapping(
        self,
        cabin_id: str,
        range_start: dt.datetime,
        range_end: dt.datetime,
        exclude_reservation_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Load non-cancelled reservations of a cabin overlapping a range.

        Args:
            cabin_id: Cabin to check (not format-validated)
            range_start: Inclusive start of the range
            range_end: Exclusive end of the range
            exclude_reservation_id: Reservation to leave out (edits)

        Returns:
            Raw reservation items ordered by check-in
        """
        # Stored values have whole seconds; the widened bounds are narrowed by overlaps()
        filter_expression = Attr("check_out").gt(format_timestamp(range_start)) & Attr(
            "status"
        ).ne(ReservationStatus.CANCELLED.value)
        if exclude_reservation_id:
            filter_expression = filter_expression & Attr("reservation_id").ne(
                exclude_reservation_id
            )

        items = self.db.query_by_gsi(
            table=RESERVATIONS_TABLE,
            index_name=CABIN_INDEX,
            partition_key_name="cabin_id",
            partition_key_value=cabin_id,
            sort_key_condition=Key("check_in").lt(format_timestamp(ceil_to_second(range_end))),
            filter_expression=filter_expression,
        )
        return [
            item
            for item in items
            if overlaps(
                parse_timestamp(item["check_in"]),
                parse_timestamp(item["check_out"]),
                range_start,
                range_end,
            )
        ]

    def get_unavailable_ranges(
        self,
        cabin_id: str,
        range_start: dt.datetime | None = None,
        range_end: dt.datetime | None = None,
    ) -> CabinAvailability:
        """Get the booked ranges of a cabin within a query range.

        Ranges are returned exactly as booked, one per reservation. Adjacent or
        overlapping reservations are not merged.

        Args:
            cabin_id: Cabin to check
            range_start: Start of the query range. Defaults to now.
            range_end: End of the query range. Defaults to six months after now.

        Returns:
            CabinAvailability with date-only intervals

        Raises:
            LodgeError: DATABASE_ERROR if the reservations query fails
        """
        now = dt.datetime.now(dt.UTC)
        start = range_start or now
        end = range_end or add_months(now, DEFAULT_WINDOW_MONTHS)

        try:
            items = self.find_overlapping(cabin_id, start, end)
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "availability_query_failed",
                extra={"cabin_id": cabin_id, "error": str(e)},
            )
            raise LodgeError(
                ErrorCode.DATABASE_ERROR,
                message="Failed to fetch cabin availability",
            ) from e

        unavailable = [
            DateInterval(
                start=to_date_string(parse_timestamp(item["check_in"])),
                end=to_date_string(parse_timestamp(item["check_out"])),
            )
            for item in items
        ]

        logger.debug(
            "availability_computed",
            extra={"cabin_id": cabin_id, "ranges": len(unavailable)},
        )
        return CabinAvailability(
            cabin_id=cabin_id,
            unavailable_dates=unavailable,
            query_range=DateInterval(start=to_date_string(start), end=to_date_string(end)),
        )
