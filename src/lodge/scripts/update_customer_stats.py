#!/usr/bin/env python3
"""
Recompute customer aggregates from the reservations table.

Usage:
    lodge-update-customer-stats --env dev
    lodge-update-customer-stats --env prod --dry-run

Exits 0 when every customer was updated, 1 otherwise.
"""

import argparse
import sys

from lodge.models import LodgeError
from lodge.services.customer_stats import CustomerStatsReconciler
from lodge.services.dynamodb import DynamoDBService
from lodge.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Recompute customer booking totals from reservations"
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Environment whose tables to update (default: ENVIRONMENT or dev)",
    )
    parser.add_argument(
        "--region",
        default=None,
        help="AWS region (default: AWS_DEFAULT_REGION or eu-west-1)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and print the aggregates without writing them",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    db = DynamoDBService(environment=args.env, region=args.region)
    print(f"\n{'[DRY RUN] ' if args.dry_run else ''}Updating customer stats in {db.name_prefix}...")

    try:
        result = CustomerStatsReconciler(db).run(dry_run=args.dry_run)
    except LodgeError as e:
        print(f"  Error: {e.message}")
        return 1

    print(f"  Reservations scanned: {result.reservations_scanned}")
    print(f"  Customers updated: {len(result.updated)}")
    if result.failed:
        print(f"  Customers failed: {len(result.failed)}")
        for customer_id, error in result.failed.items():
            print(f"    {customer_id}: {error}")

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
