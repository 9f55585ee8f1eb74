"""Integration tests for the cabin fleet summary against moto DynamoDB."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from botocore.exceptions import EndpointConnectionError

from lodge.models import ErrorCode, LodgeError
from lodge.services import CabinStatsService

pytestmark = pytest.mark.integration


@pytest.fixture
def service(db):
    return CabinStatsService(db)


class TestGetStats:
    def test_summarizes_stored_cabins(self, service, seed_cabin) -> None:
        seed_cabin(capacity=4, price=Decimal("200"), discount=Decimal("25"))
        seed_cabin(capacity=2, price=Decimal("101"), status="maintenance")

        stats = service.get_stats()

        assert stats.total_cabins == 2
        assert stats.total_capacity == 6
        assert stats.average_price == Decimal("150")
        assert stats.cabins_with_discount == 1
        assert stats.available_cabins == 1
        assert stats.maintenance_cabins == 1

    def test_connection_error_is_wrapped(self, service) -> None:
        error = EndpointConnectionError(endpoint_url="https://dynamodb.eu-west-1.amazonaws.com")
        with patch.object(service.db, "scan", side_effect=error):
            with pytest.raises(LodgeError) as exc_info:
                service.get_stats()

        assert exc_info.value.code == ErrorCode.DATABASE_ERROR
        assert exc_info.value.message == "Failed to fetch cabin stats"
