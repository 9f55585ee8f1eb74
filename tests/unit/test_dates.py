"""Tests for date and timestamp helpers."""

import datetime as dt

import pytest

from lodge.utils.dates import (
    add_months,
    ceil_to_second,
    count_nights,
    format_timestamp,
    local_day_bounds,
    parse_timestamp,
    to_date_string,
)


class TestParseTimestamp:
    def test_bare_date_is_utc_midnight(self) -> None:
        parsed = parse_timestamp("2027-06-01")

        assert parsed == dt.datetime(2027, 6, 1, tzinfo=dt.UTC)

    def test_z_suffix(self) -> None:
        parsed = parse_timestamp("2027-06-01T14:30:00Z")

        assert parsed == dt.datetime(2027, 6, 1, 14, 30, tzinfo=dt.UTC)

    def test_offset_is_kept(self) -> None:
        parsed = parse_timestamp("2027-06-01T10:00:00+02:00")

        assert parsed.utcoffset() == dt.timedelta(hours=2)
        assert to_date_string(parsed) == "2027-06-01"

    def test_naive_timestamp_becomes_aware(self) -> None:
        parsed = parse_timestamp("2027-06-01T10:00:00")

        assert parsed.tzinfo is not None

    @pytest.mark.parametrize("value", ["", "not-a-date", "2027-13-01", "2027-02-30"])
    def test_invalid_raises_value_error(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_timestamp(value)


class TestFormatTimestamp:
    def test_storage_format_is_utc_seconds(self) -> None:
        value = dt.datetime(2027, 6, 1, 12, 0, 0, 123456, tzinfo=dt.timezone(dt.timedelta(hours=2)))

        assert format_timestamp(value) == "2027-06-01T10:00:00+00:00"

    def test_string_order_matches_time_order(self) -> None:
        earlier = dt.datetime(2027, 6, 1, 9, tzinfo=dt.UTC)
        later = dt.datetime(2027, 6, 1, 10, tzinfo=dt.UTC)

        assert format_timestamp(earlier) < format_timestamp(later)


class TestToDateString:
    def test_strips_time_of_day(self) -> None:
        value = dt.datetime(2027, 6, 4, 23, 59, tzinfo=dt.UTC)

        assert to_date_string(value) == "2027-06-04"


class TestAddMonths:
    def test_six_months(self) -> None:
        value = dt.datetime(2027, 1, 15, tzinfo=dt.UTC)

        assert add_months(value, 6) == dt.datetime(2027, 7, 15, tzinfo=dt.UTC)

    def test_crosses_year(self) -> None:
        value = dt.datetime(2027, 9, 1, tzinfo=dt.UTC)

        assert add_months(value, 6) == dt.datetime(2028, 3, 1, tzinfo=dt.UTC)

    def test_clamps_to_month_end(self) -> None:
        value = dt.datetime(2027, 8, 31, tzinfo=dt.UTC)

        assert add_months(value, 6) == dt.datetime(2028, 2, 29, tzinfo=dt.UTC)


class TestLocalDayBounds:
    def test_aware_reference_keeps_timezone(self) -> None:
        now = dt.datetime(2027, 6, 1, 15, 45, tzinfo=dt.UTC)

        start, end = local_day_bounds(now)

        assert start == dt.datetime(2027, 6, 1, tzinfo=dt.UTC)
        assert end == dt.datetime(2027, 6, 2, tzinfo=dt.UTC)

    def test_naive_reference_is_local(self) -> None:
        start, end = local_day_bounds(dt.datetime(2027, 6, 1, 15, 45))

        assert start.tzinfo is not None
        assert start.hour == 0
        assert end - start >= dt.timedelta(hours=23)

    def test_default_contains_now(self) -> None:
        start, end = local_day_bounds()

        assert start <= dt.datetime.now(dt.UTC) < end


class TestCountNights:
    def test_whole_days(self) -> None:
        check_in = dt.datetime(2027, 6, 1, tzinfo=dt.UTC)
        check_out = dt.datetime(2027, 6, 4, tzinfo=dt.UTC)

        assert count_nights(check_in, check_out) == 3

    def test_partial_day_rounds_up(self) -> None:
        check_in = dt.datetime(2027, 6, 1, 15, tzinfo=dt.UTC)
        check_out = dt.datetime(2027, 6, 3, 11, tzinfo=dt.UTC)

        assert count_nights(check_in, check_out) == 2


class TestCeilToSecond:
    def test_fraction_rounds_up(self) -> None:
        value = dt.datetime(2027, 6, 1, 10, 0, 0, 500000, tzinfo=dt.UTC)

        assert ceil_to_second(value) == dt.datetime(2027, 6, 1, 10, 0, 1, tzinfo=dt.UTC)

    def test_whole_second_is_unchanged(self) -> None:
        value = dt.datetime(2027, 6, 1, 10, 0, 0, tzinfo=dt.UTC)

        assert ceil_to_second(value) == value
