"""Rate limiting utilities for API calls."""

from __future__ import annotations

import threading
import time
from typing import Callable

from kubernetes.client.exceptions import ApiException


class RateLimiter:
    """Spaces calls at least ``1 / per_second`` seconds apart.

    Shared by all worker threads of one store; the lock keeps the slot
    assignment consistent, the sleep happens outside of it.
    """

    def __init__(
        self,
        per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if per_second <= 0:
            raise ValueError("per_second must be positive")
        self._min_interval = 1.0 / per_second
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_slot = 0.0

    def acquire(self) -> None:
        """Block until the caller may issue the next call."""
        with self._lock:
            now = self._clock()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self._min_interval
        wait = slot - now
        if wait > 0:
            self._sleep(wait)


def is_rate_limit_error(e: ApiException) -> bool:
    """Check if an API exception is a rate limit error.

    Kubernetes API rate limit errors typically return 429 or 503.
    """
    return e.status == 429 or (e.status == 503 and "rate limit" in str(e).lower())
