"""Booking statistics for the dashboard counters."""

import datetime as dt
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from lodge.models import BookingStats, ErrorCode, LodgeError
from lodge.models.enums import ReservationStatus
from lodge.services.dynamodb import RESERVATIONS_TABLE
from lodge.utils.dates import local_day_bounds, parse_timestamp
from lodge.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

STATS_PROJECTION = ["check_in", "check_out", "status"]


def _within(value: dt.datetime, day_start: dt.datetime, day_end: dt.datetime) -> bool:
    return day_start <= value < day_end


def compute_booking_stats(
    reservations: Iterable[dict[str, Any]],
    day_start: dt.datetime,
    day_end: dt.datetime,
) -> BookingStats:
    """Count the dashboard counters in a single pass.

    Check-ins today skip cancelled reservations. Check-outs today are
    counted whatever the status.

    Args:
        reservations: Items with check_in, check_out and status
        day_start: Start of today (inclusive)
        day_end: Start of tomorrow (exclusive)

    Returns:
        BookingStats counters
    """
    check_ins = check_outs = checked_in = unconfirmed = 0

    for item in reservations:
        status = item.get("status")

        if status != ReservationStatus.CANCELLED.value and _within(
            parse_timestamp(item["check_in"]), day_start, day_end
        ):
            check_ins += 1
        if _within(parse_timestamp(item["check_out"]), day_start, day_end):
            check_outs += 1

        if status == ReservationStatus.CHECKED_IN.value:
            checked_in += 1
        elif status == ReservationStatus.UNCONFIRMED.value:
            unconfirmed += 1

    return BookingStats(
        today_check_ins=check_ins,
        today_check_outs=check_outs,
        checked_in=checked_in,
        unconfirmed=unconfirmed,
    )


class BookingStatsService:
    """Computes booking counters over the reservations table."""

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get_stats(self, now: dt.datetime | None = None) -> BookingStats:
        """Compute today's counters.

        Day boundaries are recomputed on every call from the local wall clock.

        Args:
            now: Reference instant (defaults to the current time)

        Returns:
            BookingStats counters

        Raises:
            LodgeError: DATABASE_ERROR if the scan fails
        """
        day_start, day_end = local_day_bounds(now)

        try:
            items = self.db.scan(RESERVATIONS_TABLE, projection=STATS_PROJECTION)
        except (BotoCoreError, ClientError) as e:
            logger.error("booking_stats_scan_failed", extra={"error": str(e)})
            raise LodgeError(
                ErrorCode.DATABASE_ERROR,
                message="Failed to fetch booking stats",
            ) from e

        return compute_booking_stats(items, day_start, day_end)
