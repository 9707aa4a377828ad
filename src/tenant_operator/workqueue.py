"""Rate limited work queue for tenant reconcile keys."""

from __future__ import annotations

import random
import threading
import time
from collections import deque
from typing import Callable

from . import metrics


class WorkQueue:
    """Deduplicating queue handing each key to at most one worker at a time.

    Semantics:
        - ``add`` of a key that is already queued is a no-op.
        - ``add`` of a key that is being processed marks it dirty; it is
          queued again when the worker calls ``done``.
        - ``add_after`` queues a key once its timer fires; each key has at
          most one pending timer, holding the earliest requested deadline.
        - ``add_rate_limited`` delays a key by its exponential backoff
          (``min_delay * 2**failures``, capped at ``max_delay``, with relative
          jitter); ``forget`` resets the backoff.

    Example:
        >>> queue = WorkQueue()
        >>> queue.add("abc")
        >>> key = queue.get()
        >>> queue.done(key)
    """

    def __init__(
        self,
        min_delay: float = 1.0,
        max_delay: float = 60.0,
        jitter: float = 0.1,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self._rng = rng or random.Random()
        self._clock = clock
        self._cond = threading.Condition()
        self._queue: deque[str] = deque()
        self._queued: set[str] = set()
        self._processing: set[str] = set()
        self._dirty: set[str] = set()
        self._failures: dict[str, int] = {}
        self._timers: dict[str, tuple[float, threading.Timer]] = {}
        self._shutting_down = False

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def _update_depth(self) -> None:
        metrics.queue_depth.set(len(self._queue))

    def add(self, key: str) -> None:
        with self._cond:
            if self._shutting_down or key in self._queued:
                return
            if key in self._processing:
                self._dirty.add(key)
                return
            self._queued.add(key)
            self._queue.append(key)
            self._update_depth()
            self._cond.notify()

    def get(self, timeout: float | None = None) -> str | None:
        """Block until a key is available.

        Returns:
            The next key, or None on shutdown or timeout
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._queue or self._shutting_down, timeout=timeout):
                return None
            if self._shutting_down:
                return None
            key = self._queue.popleft()
            self._queued.discard(key)
            self._processing.add(key)
            self._update_depth()
            return key

    def done(self, key: str) -> None:
        """Mark a key as processed; re-queues it if it was added meanwhile."""
        with self._cond:
            self._processing.discard(key)
            if key in self._dirty:
                self._dirty.discard(key)
                if not self._shutting_down:
                    self._queued.add(key)
                    self._queue.append(key)
                    self._update_depth()
                    self._cond.notify()

    def add_after(self, key: str, delay: float) -> None:
        """Queue ``key`` after ``delay`` seconds; a key keeps its earliest pending deadline."""
        if delay <= 0:
            self.add(key)
            return
        with self._cond:
            if self._shutting_down:
                return
            deadline = self._clock() + delay
            pending = self._timers.get(key)
            if pending is not None:
                if pending[0] <= deadline:
                    return
                pending[1].cancel()
            timer = threading.Timer(delay, lambda: self._fire(key, timer))
            timer.daemon = True
            self._timers[key] = (deadline, timer)
            timer.start()

    def _fire(self, key: str, timer: threading.Timer) -> None:
        with self._cond:
            pending = self._timers.get(key)
            if pending is None or pending[1] is not timer:
                return
            del self._timers[key]
        self.add(key)

    def pending_after(self) -> int:
        """Number of keys waiting on a delayed add."""
        with self._cond:
            return len(self._timers)

    def backoff(self, key: str) -> float:
        """Next backoff delay for ``key``; counts as one more failure."""
        with self._cond:
            failures = self._failures.get(key, 0)
            self._failures[key] = failures + 1
        delay = min(self.min_delay * (2 ** failures), self.max_delay)
        if self.jitter:
            delay *= 1 + self._rng.uniform(-self.jitter, self.jitter)
        return min(delay, self.max_delay)

    def add_rate_limited(self, key: str) -> None:
        metrics.queue_retries_total.inc()
        self.add_after(key, self.backoff(key))

    def num_requeues(self, key: str) -> int:
        with self._cond:
            return self._failures.get(key, 0)

    def forget(self, key: str) -> None:
        with self._cond:
            self._failures.pop(key, None)

    def shut_down(self) -> None:
        """Stop handing out keys and wake all waiting workers."""
        with self._cond:
            self._shutting_down = True
            for _, timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._cond.notify_all()
