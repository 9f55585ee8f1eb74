"""Shared fixtures: moto-backed tables, seed helpers and an API client."""

import datetime as dt
import os
import uuid
from collections.abc import Callable, Generator
from decimal import Decimal
from typing import Any

import pytest
from moto import mock_aws

# Must be in place before lodge modules build boto3 clients
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-lodge")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from lodge.services.dynamodb import (  # noqa: E402
    CABINS_TABLE,
    CUSTOMERS_TABLE,
    RESERVATIONS_TABLE,
    DynamoDBService,
)
from lodge.utils.dates import format_timestamp, parse_timestamp  # noqa: E402

TEST_SUBJECT = "user-sub-123"


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def db(aws_credentials: None) -> Generator[DynamoDBService, None, None]:
    """DynamoDB service bound to freshly created moto tables."""
    with mock_aws():
        service = DynamoDBService(environment="test", region="eu-west-1")
        service.create_tables()
        yield service


@pytest.fixture
def client(db: DynamoDBService) -> Generator[Any, None, None]:
    """FastAPI test client using the mocked tables."""
    from fastapi.testclient import TestClient

    from lodge_api.main import create_app

    with TestClient(create_app(db=db)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers API Gateway forwards for an authenticated caller."""
    return {"x-user-sub": TEST_SUBJECT}


def _timestamp(value: str | dt.datetime) -> str:
    if isinstance(value, dt.datetime):
        return format_timestamp(value)
    return format_timestamp(parse_timestamp(value))


@pytest.fixture
def seed_cabin(db: DynamoDBService) -> Callable[..., dict[str, Any]]:
    """Insert a cabin item. Keyword arguments override the defaults."""

    def _seed(**overrides: Any) -> dict[str, Any]:
        now = format_timestamp(dt.datetime.now(dt.UTC))
        item: dict[str, Any] = {
            "cabin_id": f"cabin-{uuid.uuid4().hex[:8]}",
            "name": "Pine Cabin",
            "description": "Cabin by the lake",
            "capacity": 4,
            "price": Decimal("200"),
            "discount": Decimal("0"),
            "amenities": ["sauna"],
            "status": "available",
            "booking_version": 0,
            "created_at": now,
            "updated_at": now,
        }
        item.update(overrides)
        db.put_item(CABINS_TABLE, item)
        return item

    return _seed


@pytest.fixture
def seed_reservation(db: DynamoDBService) -> Callable[..., dict[str, Any]]:
    """Insert a reservation item. Dates accept ISO strings or datetimes."""

    def _seed(
        cabin_id: str = "cabin-1",
        check_in: str | dt.datetime = "2027-06-01",
        check_out: str | dt.datetime = "2027-06-04",
        **overrides: Any,
    ) -> dict[str, Any]:
        created_at = _timestamp(overrides.pop("created_at", dt.datetime.now(dt.UTC)))
        item: dict[str, Any] = {
            "reservation_id": f"RES-2027-{uuid.uuid4().hex[:8].upper()}",
            "cabin_id": cabin_id,
            "customer_id": TEST_SUBJECT,
            "check_in": _timestamp(check_in),
            "check_out": _timestamp(check_out),
            "num_nights": 3,
            "num_guests": 2,
            "cabin_price": Decimal("200"),
            "extras_price": Decimal("0"),
            "total_price": Decimal("600"),
            "status": "confirmed",
            "is_paid": False,
            "created_at": created_at,
            "updated_at": created_at,
        }
        item.update(overrides)
        db.put_item(RESERVATIONS_TABLE, item)
        return item

    return _seed


@pytest.fixture
def get_customer_item(db: DynamoDBService) -> Callable[[str], dict[str, Any] | None]:
    """Read a raw customer aggregate item."""

    def _get(customer_id: str) -> dict[str, Any] | None:
        return db.get_item(CUSTOMERS_TABLE, {"customer_id": customer_id})

    return _get
