"""Logging for the lodge backend.

Every record carries the correlation ID of the request (or CLI run) that
produced it, so API lines and reconciler lines can be grepped per request::

    [3f0c...] 2026-10-19 09:00:00,123 INFO lodge.services.bookings: booking_created

The ID lives in a ``ContextVar`` set by ``CorrelationIdMiddleware``.
"""

import logging
import os
import uuid
from contextvars import ContextVar
from decimal import Decimal
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
NO_CORRELATION_ID = "-"


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, minting a UUID4 when none is given."""
    value = correlation_id or str(uuid.uuid4())
    _correlation_id.set(value)
    return value


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamps ``record.correlation_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class CorrelationFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        return f"[{getattr(record, 'correlation_id', NO_CORRELATION_ID)}] {line}"


def get_logger(name: str) -> logging.Logger:
    """``logging.getLogger`` with the correlation filter attached once."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def configure_logging(level: str | None = None) -> None:
    """Attach a correlation-aware stderr handler to the root logger.

    Safe to call repeatedly (the app factory and the CLI both call it); the
    handler is only added the first time, while the level is always reapplied.

    Args:
        level: Level name. Falls back to ``LOG_LEVEL``, then ``INFO``.
    """
    root = logging.getLogger()
    root.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())

    for existing in root.handlers:
        if isinstance(existing.formatter, CorrelationFormatter):
            return

    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(CorrelationFormatter(LOG_FORMAT))
    root.addHandler(handler)


def log_customer_stats(
    logger: logging.Logger,
    customer_id: str,
    *,
    total_bookings: int,
    total_spent: Decimal,
    dry_run: bool = False,
    error: str | None = None,
    **extra: Any,
) -> None:
    """One line per reconciled customer; ERROR level when the upsert failed."""
    fields: dict[str, Any] = {
        "customer_id": customer_id,
        "total_bookings": total_bookings,
        "total_spent": str(total_spent),
        "dry_run": dry_run,
        **extra,
    }
    summary = f"customer_stats {customer_id} bookings={total_bookings} spent={total_spent}"
    if dry_run:
        summary += " (dry run)"

    if error is None:
        logger.info(summary, extra=fields)
        return

    fields["error"] = error
    logger.error(f"{summary} failed: {error}", extra=fields)
