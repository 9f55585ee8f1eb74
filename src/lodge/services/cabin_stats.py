"""Cabin fleet summary for the cabins page."""

from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from lodge.models import CabinStats, ErrorCode, LodgeError
from lodge.models.enums import CabinStatus
from lodge.services.dynamodb import CABINS_TABLE
from lodge.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

CABIN_STATS_PROJECTION = ["capacity", "price", "discount", "status"]


def compute_cabin_stats(cabins: Iterable[dict[str, Any]]) -> CabinStats:
    """Summarize cabin items in a single pass.

    Args:
        cabins: Items with capacity, price, discount and status

    Returns:
        CabinStats, all zero for an empty fleet
    """
    total = capacity = discounted = 0
    price_sum = Decimal(0)
    by_status = {status.value: 0 for status in CabinStatus}

    for item in cabins:
        total += 1
        capacity += int(item.get("capacity", 0))
        price_sum += Decimal(item.get("price", 0))
        if Decimal(item.get("discount", 0)) > 0:
            discounted += 1
        if item.get("status") in by_status:
            by_status[item["status"]] += 1

    average = (price_sum / total).quantize(Decimal(1)) if total else Decimal(0)
    return CabinStats(
        total_cabins=total,
        total_capacity=capacity,
        average_price=average,
        cabins_with_discount=discounted,
        available_cabins=by_status[CabinStatus.AVAILABLE.value],
        maintenance_cabins=by_status[CabinStatus.MAINTENANCE.value],
        inactive_cabins=by_status[CabinStatus.INACTIVE.value],
    )


class CabinStatsService:
    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get_stats(self) -> CabinStats:
        """Summarize every cabin.

        Raises:
            LodgeError: DATABASE_ERROR if the scan fails
        """
        try:
            items = self.db.scan(CABINS_TABLE, projection=CABIN_STATS_PROJECTION)
        except (BotoCoreError, ClientError) as e:
            logger.error("cabin_stats_scan_failed", extra={"error": str(e)})
            raise LodgeError(
                ErrorCode.DATABASE_ERROR,
                message="Failed to fetch cabin stats",
            ) from e

        return compute_cabin_stats(items)
