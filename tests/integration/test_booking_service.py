"""Integration tests for reservation management against moto DynamoDB."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from lodge.models import (
    ErrorCode,
    LodgeError,
    ReservationCreate,
    ReservationStatus,
    ReservationUpdate,
)
from lodge.services import AvailabilityService, BookingService
from lodge.services.bookings import MAX_WRITE_ATTEMPTS
from lodge.services.dynamodb import CABINS_TABLE, RESERVATIONS_TABLE

pytestmark = pytest.mark.integration

SUBJECT = "user-sub-123"


@pytest.fixture
def service(db):
    return BookingService(db, AvailabilityService(db))


def _request(cabin_id: str, check_in: str, check_out: str, **overrides) -> ReservationCreate:
    values = {
        "cabin_id": cabin_id,
        "check_in": check_in,
        "check_out": check_out,
        "num_guests": 2,
    }
    values.update(overrides)
    return ReservationCreate.model_validate(values)


class TestCreateBooking:
    def test_creates_reservation_with_price_snapshot(self, db, service, seed_cabin) -> None:
        cabin = seed_cabin(price=Decimal("200"), discount=Decimal("20"))

        reservation = service.create_booking(
            _request(cabin["cabin_id"], "2027-06-01", "2027-06-04", extras_price="50"),
            customer_id=SUBJECT,
        )

        assert reservation.reservation_id.startswith("RES-")
        assert reservation.customer_id == SUBJECT
        assert reservation.num_nights == 3
        assert reservation.cabin_price == Decimal("180")
        assert reservation.total_price == Decimal("590")
        assert reservation.status == ReservationStatus.UNCONFIRMED

        stored = db.get_item(RESERVATIONS_TABLE, {"reservation_id": reservation.reservation_id})
        assert stored["check_in"] == "2027-06-01T00:00:00+00:00"
        assert stored["total_price"] == Decimal("590")

    def test_bumps_cabin_booking_version(self, db, service, seed_cabin) -> None:
        cabin = seed_cabin()

        service.create_booking(_request(cabin["cabin_id"], "2027-06-01", "2027-06-04"), SUBJECT)
        service.create_booking(_request(cabin["cabin_id"], "2027-07-01", "2027-07-04"), SUBJECT)

        stored = db.get_item(CABINS_TABLE, {"cabin_id": cabin["cabin_id"]})
        assert stored["booking_version"] == 2

    def test_explicit_customer_id_wins(self, service, seed_cabin) -> None:
        cabin = seed_cabin()

        reservation = service.create_booking(
            _request(cabin["cabin_id"], "2027-06-01", "2027-06-02", customer_id="guest-9"),
            SUBJECT,
        )

        assert reservation.customer_id == "guest-9"

    def test_overlap_is_rejected(self, service, seed_cabin, seed_reservation) -> None:
        cabin = seed_cabin()
        existing = seed_reservation(
            cabin_id=cabin["cabin_id"], check_in="2027-06-01", check_out="2027-06-04"
        )

        with pytest.raises(LodgeError) as exc_info:
            service.create_booking(_request(cabin["cabin_id"], "2027-06-03", "2027-06-05"), SUBJECT)

        assert exc_info.value.code == ErrorCode.DATES_UNAVAILABLE
        assert exc_info.value.details == {"conflicts": [existing["reservation_id"]]}

    def test_back_to_back_stays_are_allowed(self, service, seed_cabin, seed_reservation) -> None:
        cabin = seed_cabin()
        seed_reservation(cabin_id=cabin["cabin_id"], check_in="2027-06-01", check_out="2027-06-04")

        reservation = service.create_booking(
            _request(cabin["cabin_id"], "2027-06-04", "2027-06-06"), SUBJECT
        )

        assert reservation.num_nights == 2

    def test_cancelled_reservations_do_not_block(
        self, service, seed_cabin, seed_reservation
    ) -> None:
        cabin = seed_cabin()
        seed_reservation(
            cabin_id=cabin["cabin_id"],
            check_in="2027-06-01",
            check_out="2027-06-04",
            status="cancelled",
        )

        reservation = service.create_booking(
            _request(cabin["cabin_id"], "2027-06-01", "2027-06-04"), SUBJECT
        )

        assert reservation.status == ReservationStatus.UNCONFIRMED

    def test_guests_over_capacity(self, service, seed_cabin) -> None:
        cabin = seed_cabin(capacity=2)

        with pytest.raises(LodgeError) as exc_info:
            service.create_booking(
                _request(cabin["cabin_id"], "2027-06-01", "2027-06-04", num_guests=3), SUBJECT
            )

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_unknown_cabin(self, service) -> None:
        with pytest.raises(LodgeError) as exc_info:
            service.create_booking(_request("missing", "2027-06-01", "2027-06-04"), SUBJECT)

        assert exc_info.value.code == ErrorCode.CABIN_NOT_FOUND

    def test_concurrent_booking_is_detected_and_retried(
        self, db, service, seed_cabin, seed_reservation
    ) -> None:
        """A booking committed between the overlap check and the write is seen on retry."""
        cabin = seed_cabin()
        real_write = db.transact_write
        calls = []

        def racing_write(items):
            if not calls:
                # Another request books the same dates and bumps the version first
                seed_reservation(
                    cabin_id=cabin["cabin_id"], check_in="2027-06-02", check_out="2027-06-05"
                )
                db.update_item(
                    table=CABINS_TABLE,
                    key={"cabin_id": cabin["cabin_id"]},
                    update_expression="SET booking_version = :v",
                    expression_attribute_values={":v": 1},
                )
            calls.append(items)
            return real_write(items)

        with patch.object(db, "transact_write", side_effect=racing_write):
            with pytest.raises(LodgeError) as exc_info:
                service.create_booking(
                    _request(cabin["cabin_id"], "2027-06-01", "2027-06-04"), SUBJECT
                )

        assert exc_info.value.code == ErrorCode.DATES_UNAVAILABLE
        assert len(calls) == 1
        assert len(db.scan(RESERVATIONS_TABLE)) == 1

    def test_version_conflict_retries_then_succeeds(self, db, service, seed_cabin) -> None:
        cabin = seed_cabin()
        real_write = db.transact_write
        outcomes = [False]

        def flaky_write(items):
            if outcomes:
                return outcomes.pop()
            return real_write(items)

        with patch.object(db, "transact_write", side_effect=flaky_write) as write:
            reservation = service.create_booking(
                _request(cabin["cabin_id"], "2027-06-01", "2027-06-04"), SUBJECT
            )

        assert reservation.num_nights == 3
        assert write.call_count == 2
        assert db.get_item(RESERVATIONS_TABLE, {"reservation_id": reservation.reservation_id})

    def test_version_conflict_exhausts_retries(self, db, service, seed_cabin) -> None:
        cabin = seed_cabin()

        with patch.object(db, "transact_write", return_value=False) as write:
            with pytest.raises(LodgeError) as exc_info:
                service.create_booking(
                    _request(cabin["cabin_id"], "2027-06-01", "2027-06-04"), SUBJECT
                )

        assert exc_info.value.code == ErrorCode.BOOKING_CONFLICT
        assert write.call_count == MAX_WRITE_ATTEMPTS


class TestReadAndUpdate:
    def test_get_booking(self, service, seed_reservation) -> None:
        item = seed_reservation()

        reservation = service.get_booking(item["reservation_id"])

        assert reservation.reservation_id == item["reservation_id"]
        assert reservation.num_nights == 3

    def test_get_missing_booking(self, service) -> None:
        with pytest.raises(LodgeError) as exc_info:
            service.get_booking("RES-2027-MISSING")

        assert exc_info.value.code == ErrorCode.BOOKING_NOT_FOUND

    def test_list_sorted_by_check_in_descending(self, service, seed_reservation) -> None:
        seed_reservation(check_in="2027-06-01", check_out="2027-06-02")
        seed_reservation(check_in="2027-08-01", check_out="2027-08-02")
        seed_reservation(check_in="2027-07-01", check_out="2027-07-02")

        page = service.list_bookings()

        assert [r.check_in.month for r in page.items] == [8, 7, 6]
        assert page.pagination.total_bookings == 3

    def test_list_filters_and_paginates(self, service, seed_reservation) -> None:
        for day in range(1, 6):
            seed_reservation(check_in=f"2027-06-0{day}", check_out=f"2027-06-0{day + 1}")
        seed_reservation(check_in="2027-09-01", check_out="2027-09-02", status="cancelled")

        page = service.list_bookings(status=ReservationStatus.CONFIRMED, page=2, limit=2)

        assert [r.check_in.day for r in page.items] == [3, 2]
        assert page.pagination.total_bookings == 5
        assert page.pagination.total_pages == 3
        assert page.pagination.has_next_page
        assert page.pagination.has_prev_page

    def test_update_status_any_transition(self, service, seed_reservation) -> None:
        item = seed_reservation(status="checked-out")

        reservation = service.update_status(item["reservation_id"], ReservationStatus.UNCONFIRMED)

        assert reservation.status == ReservationStatus.UNCONFIRMED
        assert reservation.updated_at >= reservation.created_at

    def test_update_status_missing(self, db, service) -> None:
        with pytest.raises(LodgeError) as exc_info:
            service.update_status("RES-2027-MISSING", ReservationStatus.CONFIRMED)

        assert exc_info.value.code == ErrorCode.BOOKING_NOT_FOUND
        assert db.scan(RESERVATIONS_TABLE) == []

    def test_delete_booking(self, db, service, seed_reservation) -> None:
        item = seed_reservation()

        service.delete_booking(item["reservation_id"])

        assert db.get_item(RESERVATIONS_TABLE, {"reservation_id": item["reservation_id"]}) is None

    def test_delete_missing_booking(self, service) -> None:
        with pytest.raises(LodgeError) as exc_info:
            service.delete_booking("RES-2027-MISSING")

        assert exc_info.value.code == ErrorCode.BOOKING_NOT_FOUND


class TestUpdateBooking:
    @pytest.fixture
    def booked(self, seed_cabin, seed_reservation):
        cabin = seed_cabin(capacity=4)
        item = seed_reservation(
            cabin_id=cabin["cabin_id"],
            check_in="2027-06-01",
            check_out="2027-06-04",
            cabin_price=Decimal("180"),
            extras_price=Decimal("20"),
            total_price=Decimal("560"),
        )
        return cabin, item

    def test_new_dates_recompute_nights_and_total(self, db, service, booked) -> None:
        cabin, item = booked

        reservation = service.update_booking(
            item["reservation_id"],
            ReservationUpdate.model_validate({"checkIn": "2027-06-02", "checkOut": "2027-06-07"}),
        )

        assert reservation.num_nights == 5
        assert reservation.cabin_price == Decimal("180")
        assert reservation.total_price == Decimal("920")
        stored = db.get_item(RESERVATIONS_TABLE, {"reservation_id": item["reservation_id"]})
        assert stored["check_out"] == "2027-06-07T00:00:00+00:00"
        assert stored["total_price"] == Decimal("920")
        assert db.get_item(CABINS_TABLE, {"cabin_id": cabin["cabin_id"]})["booking_version"] == 1

    def test_shifting_within_own_stay_does_not_conflict(self, service, booked) -> None:
        _, item = booked

        reservation = service.update_booking(
            item["reservation_id"], ReservationUpdate(check_out="2027-06-03")
        )

        assert reservation.num_nights == 2

    def test_overlap_with_other_reservation_is_rejected(
        self, service, booked, seed_reservation
    ) -> None:
        cabin, item = booked
        other = seed_reservation(
            cabin_id=cabin["cabin_id"], check_in="2027-06-10", check_out="2027-06-12"
        )

        with pytest.raises(LodgeError) as exc_info:
            service.update_booking(
                item["reservation_id"], ReservationUpdate(check_out="2027-06-11")
            )

        assert exc_info.value.code == ErrorCode.DATES_UNAVAILABLE
        assert exc_info.value.details == {"conflicts": [other["reservation_id"]]}

    def test_extras_only_keeps_dates(self, service, booked) -> None:
        _, item = booked

        reservation = service.update_booking(
            item["reservation_id"], ReservationUpdate(extras_price="0", is_paid=True)
        )

        assert reservation.total_price == Decimal("540")
        assert reservation.is_paid
        assert reservation.check_in.day == 1

    def test_check_out_before_check_in(self, service, booked) -> None:
        _, item = booked

        with pytest.raises(LodgeError) as exc_info:
            service.update_booking(item["reservation_id"], ReservationUpdate(check_in="2027-06-05"))

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_guests_over_capacity(self, service, booked) -> None:
        _, item = booked

        with pytest.raises(LodgeError) as exc_info:
            service.update_booking(item["reservation_id"], ReservationUpdate(num_guests=5))

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_missing_booking(self, service) -> None:
        with pytest.raises(LodgeError) as exc_info:
            service.update_booking("RES-2027-MISSING", ReservationUpdate(num_guests=1))

        assert exc_info.value.code == ErrorCode.BOOKING_NOT_FOUND

    def test_version_conflict_exhausts_retries(self, db, service, booked) -> None:
        _, item = booked

        with patch.object(db, "transact_write", return_value=False) as write:
            with pytest.raises(LodgeError) as exc_info:
                service.update_booking(item["reservation_id"], ReservationUpdate(num_guests=1))

        assert exc_info.value.code == ErrorCode.BOOKING_CONFLICT
        assert write.call_count == MAX_WRITE_ATTEMPTS
