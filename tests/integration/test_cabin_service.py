"""Integration tests for cabin management against moto DynamoDB."""

import logging
from decimal import Decimal

import pytest

from lodge.models import CabinCreate, CabinStatus, CabinUpdate, ErrorCode, LodgeError
from lodge.services import CabinService
from lodge.services.dynamodb import CABINS_TABLE

pytestmark = pytest.mark.integration


@pytest.fixture
def service(db):
    return CabinService(db)


class TestCrud:
    def test_create_and_get(self, service) -> None:
        created = service.create_cabin(
            CabinCreate(name="Birch", capacity=3, price=Decimal("150"), discount=Decimal("10"))
        )

        fetched = service.get_cabin(created.cabin_id)

        assert fetched.name == "Birch"
        assert fetched.discounted_price == Decimal("140")
        assert fetched.booking_version == 0

    def test_create_logs_cabin_name(self, service, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="lodge.services.cabins"):
            created = service.create_cabin(
                CabinCreate(name="Birch", capacity=2, price=Decimal("100"))
            )

        record = next(r for r in caplog.records if r.getMessage() == "cabin_created")
        assert record.cabin_id == created.cabin_id
        assert record.cabin_name == "Birch"

    def test_create_rejects_discount_equal_to_price(self, service) -> None:
        with pytest.raises(LodgeError) as exc_info:
            service.create_cabin(
                CabinCreate(name="Birch", capacity=3, price=Decimal("150"), discount=Decimal("150"))
            )

        assert exc_info.value.code == ErrorCode.DISCOUNT_EXCEEDS_PRICE

    def test_list_sorted_by_name(self, service, seed_cabin) -> None:
        seed_cabin(name="Spruce")
        seed_cabin(name="aspen")
        seed_cabin(name="Birch")

        assert [c.name for c in service.list_cabins()] == ["aspen", "Birch", "Spruce"]

    def test_get_missing(self, service) -> None:
        with pytest.raises(LodgeError) as exc_info:
            service.get_cabin("missing")

        assert exc_info.value.code == ErrorCode.CABIN_NOT_FOUND

    def test_partial_update(self, service, seed_cabin) -> None:
        cabin = seed_cabin(name="Pine", price=Decimal("200"))

        updated = service.update_cabin(
            cabin["cabin_id"], CabinUpdate(discount=Decimal("50"), status=CabinStatus.MAINTENANCE)
        )

        assert updated.name == "Pine"
        assert updated.discount == Decimal("50")
        assert updated.status == CabinStatus.MAINTENANCE

    def test_update_checks_discount_against_stored_price(self, service, seed_cabin) -> None:
        cabin = seed_cabin(price=Decimal("200"))

        with pytest.raises(LodgeError) as exc_info:
            service.update_cabin(cabin["cabin_id"], CabinUpdate(discount=Decimal("200")))

        assert exc_info.value.code == ErrorCode.DISCOUNT_EXCEEDS_PRICE

    def test_update_checks_lowered_price_against_stored_discount(
        self, service, seed_cabin
    ) -> None:
        cabin = seed_cabin(price=Decimal("200"), discount=Decimal("60"))

        with pytest.raises(LodgeError):
            service.update_cabin(cabin["cabin_id"], CabinUpdate(price=Decimal("50")))

    def test_update_missing(self, service) -> None:
        with pytest.raises(LodgeError) as exc_info:
            service.update_cabin("missing", CabinUpdate(name="X"))

        assert exc_info.value.code == ErrorCode.CABIN_NOT_FOUND


class TestBulkDelete:
    def test_deletes_cabins_without_active_bookings(
        self, db, service, seed_cabin, seed_reservation
    ) -> None:
        first = seed_cabin()
        second = seed_cabin()
        seed_reservation(cabin_id=first["cabin_id"], status="cancelled")
        seed_reservation(cabin_id=second["cabin_id"], status="checked-out")

        result = service.bulk_delete([first["cabin_id"], second["cabin_id"]])

        assert result.deleted_count == 2
        assert db.scan(CABINS_TABLE) == []

    def test_refuses_when_any_cabin_has_active_bookings(
        self, db, service, seed_cabin, seed_reservation
    ) -> None:
        free = seed_cabin(name="Free")
        busy = seed_cabin(name="Busy")
        seed_reservation(cabin_id=busy["cabin_id"], status="confirmed")

        with pytest.raises(LodgeError) as exc_info:
            service.bulk_delete([free["cabin_id"], busy["cabin_id"]])

        assert exc_info.value.code == ErrorCode.ACTIVE_BOOKINGS
        assert exc_info.value.message == "Cannot delete cabins with active bookings: Busy"
        assert exc_info.value.details == {"cabin_ids": [busy["cabin_id"]]}
        assert len(db.scan(CABINS_TABLE)) == 2

    def test_missing_ids_are_not_counted(self, service, seed_cabin) -> None:
        cabin = seed_cabin()

        result = service.bulk_delete([cabin["cabin_id"], "missing", cabin["cabin_id"]])

        assert result.deleted_count == 1


class TestBulkUpdateDiscount:
    def test_sets_discount_on_every_cabin(self, service, seed_cabin) -> None:
        first = seed_cabin(price=Decimal("200"))
        second = seed_cabin(price=Decimal("100"))

        result = service.bulk_update_discount(
            [first["cabin_id"], second["cabin_id"]], Decimal("30")
        )

        assert result.modified_count == 2
        assert service.get_cabin(second["cabin_id"]).discount == Decimal("30")

    def test_rejects_discount_reaching_any_price(self, service, seed_cabin) -> None:
        cheap = seed_cabin(name="Hut", price=Decimal("100"))
        pricey = seed_cabin(name="Lodge", price=Decimal("500"))

        with pytest.raises(LodgeError) as exc_info:
            service.bulk_update_discount([cheap["cabin_id"], pricey["cabin_id"]], Decimal("100"))

        assert exc_info.value.code == ErrorCode.DISCOUNT_EXCEEDS_PRICE
        assert exc_info.value.message == "Discount ($100) exceeds or equals price for: Hut ($100)"
        assert service.get_cabin(pricey["cabin_id"]).discount == Decimal("0")

    def test_missing_discount(self, service, seed_cabin) -> None:
        cabin = seed_cabin()

        with pytest.raises(LodgeError) as exc_info:
            service.bulk_update_discount([cabin["cabin_id"]], None)

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_negative_discount(self, service, seed_cabin) -> None:
        cabin = seed_cabin()

        with pytest.raises(LodgeError) as exc_info:
            service.bulk_update_discount([cabin["cabin_id"]], Decimal("-1"))

        assert exc_info.value.message == "Discount must be a non-negative number"
