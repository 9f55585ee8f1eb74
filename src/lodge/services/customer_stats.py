"""Customer statistics reconciler.

Rebuilds the denormalized customer aggregates (total bookings, total spent,
last booking date) from the reservations table. The recomputation is pure,
so running it twice without reservation changes writes identical records.
"""

import datetime as dt
from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field

from lodge.models import CustomerStats, ErrorCode, LodgeError
from lodge.models.enums import ReservationStatus
from lodge.services.dynamodb import CUSTOMERS_TABLE, RESERVATIONS_TABLE
from lodge.utils.dates import format_timestamp, parse_timestamp
from lodge.utils.logging import get_logger, log_customer_stats

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

RECONCILE_PROJECTION = ["reservation_id", "customer_id", "status", "total_price", "created_at"]

UPSERT_EXPRESSION = (
    "SET total_bookings = :total_bookings, "
    "total_spent = :total_spent, "
    "last_booking_date = :last_booking_date, "
    "created_at = if_not_exists(created_at, :now)"
)


class ReconcileResult(BaseModel):
    """Outcome of one reconciler run."""

    reservations_scanned: int = 0
    updated: list[CustomerStats] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed


def aggregate_customer_stats(reservations: Iterable[dict[str, Any]]) -> list[CustomerStats]:
    """Group reservations by customer and compute the aggregates.

    - total_bookings counts every reservation, cancelled ones included
    - total_spent sums total_price over non-cancelled reservations
    - last_booking_date is the latest creation time (not check-in time)

    Args:
        reservations: Items with customer_id, status, total_price, created_at

    Returns:
        One CustomerStats per customer, ordered by customer_id
    """
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for item in reservations:
        customer_id = item.get("customer_id")
        if not customer_id:
            logger.warning(
                "reservation_without_customer",
                extra={"reservation_id": item.get("reservation_id")},
            )
            continue
        grouped[customer_id].append(item)

    results = []
    for customer_id in sorted(grouped):
        items = grouped[customer_id]
        total_spent = sum(
            (
                Decimal(item.get("total_price") or 0)
                for item in items
                if item.get("status") != ReservationStatus.CANCELLED.value
            ),
            Decimal(0),
        )
        created = [parse_timestamp(i["created_at"]) for i in items if i.get("created_at")]

        results.append(
            CustomerStats(
                customer_id=customer_id,
                total_bookings=len(items),
                total_spent=total_spent,
                last_booking_date=max(created) if created else None,
            )
        )
    return results


class CustomerStatsReconciler:
    """Recomputes and upserts every customer aggregate."""

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize the reconciler.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def run(self, dry_run: bool = False) -> ReconcileResult:
        """Scan all reservations and upsert the customer aggregates.

        A failed upsert for one customer is recorded and the batch goes on.

        Args:
            dry_run: Compute and log without writing

        Returns:
            ReconcileResult with updated and failed customers

        Raises:
            LodgeError: DATABASE_ERROR if the reservations scan fails
        """
        try:
            reservations = self.db.scan(RESERVATIONS_TABLE, projection=RECONCILE_PROJECTION)
        except (BotoCoreError, ClientError) as e:
            logger.error("reconcile_scan_failed", extra={"error": str(e)})
            raise LodgeError(
                ErrorCode.DATABASE_ERROR,
                message="Failed to load reservations",
            ) from e

        logger.info(
            "reconcile_started",
            extra={"reservations": len(reservations), "dry_run": dry_run},
        )
        result = ReconcileResult(reservations_scanned=len(reservations), dry_run=dry_run)

        for stats in aggregate_customer_stats(reservations):
            if dry_run:
                result.updated.append(stats)
                log_customer_stats(
                    logger,
                    stats.customer_id,
                    total_bookings=stats.total_bookings,
                    total_spent=stats.total_spent,
                    dry_run=True,
                )
                continue

            try:
                self._upsert(stats)
            except (BotoCoreError, ClientError) as e:
                result.failed[stats.customer_id] = str(e)
                log_customer_stats(
                    logger,
                    stats.customer_id,
                    total_bookings=stats.total_bookings,
                    total_spent=stats.total_spent,
                    error=str(e),
                )
                continue

            result.updated.append(stats)
            log_customer_stats(
                logger,
                stats.customer_id,
                total_bookings=stats.total_bookings,
                total_spent=stats.total_spent,
            )

        logger.info(
            "reconcile_finished",
            extra={"updated": len(result.updated), "failed": len(result.failed)},
        )
        return result

    def _upsert(self, stats: CustomerStats) -> None:
        """Create or overwrite one customer aggregate."""
        last_booking = (
            format_timestamp(stats.last_booking_date) if stats.last_booking_date else None
        )
        self.db.update_item(
            table=CUSTOMERS_TABLE,
            key={"customer_id": stats.customer_id},
            update_expression=UPSERT_EXPRESSION,
            expression_attribute_values={
                ":total_bookings": stats.total_bookings,
                ":total_spent": stats.total_spent,
                ":last_booking_date": last_booking,
                ":now": format_timestamp(dt.datetime.now(dt.UTC)),
            },
        )
