"""Date and timestamp helpers.

Timestamps are stored as UTC ISO-8601 strings with seconds precision
(``2027-06-01T00:00:00+00:00``) so that string order in DynamoDB matches
chronological order.
"""

import calendar
import datetime as dt
import math

SECONDS_PER_DAY = 24 * 60 * 60


def to_utc(value: dt.datetime) -> dt.datetime:
    """Convert a datetime to UTC. Naive values are read as local time."""
    return value.astimezone(dt.UTC)


def format_timestamp(value: dt.datetime) -> str:
    """Format a datetime in the storage representation."""
    return to_utc(value).replace(microsecond=0).isoformat()


def parse_timestamp(value: str) -> dt.datetime:
    """Parse an ISO-8601 date or timestamp into an aware datetime.

    A bare date (``2027-06-01``) is midnight UTC. A timestamp without an
    offset is local time.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    if len(text) == 10:
        day = dt.date.fromisoformat(text)
        return dt.datetime.combine(day, dt.time.min, tzinfo=dt.UTC)

    parsed = dt.datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def to_date_string(value: dt.datetime) -> str:
    """Strip time-of-day and return the UTC calendar date as ``YYYY-MM-DD``."""
    return to_utc(value).date().isoformat()


def add_months(value: dt.datetime, months: int) -> dt.datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def local_day_bounds(now: dt.datetime | None = None) -> tuple[dt.datetime, dt.datetime]:
    """Return ``[start of today, start of tomorrow)`` in local time.

    Args:
        now: Reference instant. Defaults to the current wall-clock time.
            Aware values keep their own timezone.

    Returns:
        Tuple of aware datetimes (day_start, day_end).
    """
    now = now or dt.datetime.now()
    today = now.date()
    tomorrow = today + dt.timedelta(days=1)

    if now.tzinfo is None:
        return (
            dt.datetime.combine(today, dt.time.min).astimezone(),
            dt.datetime.combine(tomorrow, dt.time.min).astimezone(),
        )
    return (
        dt.datetime.combine(today, dt.time.min, tzinfo=now.tzinfo),
        dt.datetime.combine(tomorrow, dt.time.min, tzinfo=now.tzinfo),
    )


def count_nights(check_in: dt.datetime, check_out: dt.datetime) -> int:
    """Number of nights between two instants, rounded up to whole days."""
    seconds = (check_out - check_in).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)


def ceil_to_second(value: dt.datetime) -> dt.datetime:
    """Round up to the next whole second; whole seconds are returned unchanged."""
    if value.microsecond == 0:
        return value
    return value.replace(microsecond=0) + dt.timedelta(seconds=1)
