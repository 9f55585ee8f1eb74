"""In-memory fixed-window rate limiting.

Counters live in the process, so limits apply per API instance (one Lambda
container or one uvicorn worker).
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

from lodge.models import ErrorCode, LodgeError
from lodge.utils.logging import get_logger
from lodge_api.security import get_optional_subject

logger = get_logger(__name__)

# Expired windows are dropped at most this often
SWEEP_INTERVAL_SECONDS = 5 * 60


@dataclass(frozen=True)
class RateLimitConfig:
    """Allowed requests per window."""

    max_requests: int
    window_seconds: int


MUTATION_LIMIT = RateLimitConfig(max_requests=30, window_seconds=60)
BOOKING_CREATE_LIMIT = RateLimitConfig(max_requests=20, window_seconds=60)


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window counter keyed by caller and endpoint."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str, config: RateLimitConfig) -> float | None:
        """Count one request against ``key``.

        Returns:
            None if the request is allowed, otherwise seconds until the
            window resets
        """
        now = self._clock()
        with self._lock:
            self._sweep(now)

            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + config.window_seconds)
                return None

            if window.count >= config.max_requests:
                return window.reset_at - now

            window.count += 1
            return None

    def __len__(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._windows = {k: w for k, w in self._windows.items() if now < w.reset_at}
        self._last_sweep = now


def rate_limit(endpoint: str, config: RateLimitConfig) -> Callable[[Request], None]:
    """Build a route dependency enforcing ``config`` on ``endpoint``.

    Usage:
        @router.post("/cabins", dependencies=[Depends(rate_limit("cabins:create", MUTATION_LIMIT))])
    """

    def _check(request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiter
        key = f"{get_optional_subject(request) or 'anonymous'}:{endpoint}"

        retry_after = limiter.hit(key, config)
        if retry_after is not None:
            logger.warning("rate_limited", extra={"key": key, "endpoint": endpoint})
            raise LodgeError(
                ErrorCode.RATE_LIMITED,
                details={"retry_after_seconds": max(1, int(retry_after + 0.999))},
            )

    return _check
