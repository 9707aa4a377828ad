"""Unit tests for the tenant work queue."""

from __future__ import annotations

import random
import threading
from unittest.mock import patch

from tenant_operator.workqueue import WorkQueue


class TestWorkQueue:
    """Test queue deduplication and hand-out."""

    def test_add_and_get(self) -> None:
        queue = WorkQueue()
        queue.add("abc")
        assert len(queue) == 1
        assert queue.get(timeout=0.1) == "abc"
        assert len(queue) == 0

    def test_duplicate_add_is_collapsed(self) -> None:
        queue = WorkQueue()
        queue.add("abc")
        queue.add("abc")
        queue.add("xyz")
        assert len(queue) == 2

    def test_fifo_order(self) -> None:
        queue = WorkQueue()
        for key in ("a", "b", "c"):
            queue.add(key)
        assert [queue.get(timeout=0.1) for _ in range(3)] == ["a", "b", "c"]

    def test_key_in_processing_is_not_handed_out_twice(self) -> None:
        queue = WorkQueue()
        queue.add("abc")
        assert queue.get(timeout=0.1) == "abc"

        queue.add("abc")
        assert len(queue) == 0
        assert queue.get(timeout=0.05) is None

        queue.done("abc")
        assert queue.get(timeout=0.1) == "abc"

    def test_done_without_readd(self) -> None:
        queue = WorkQueue()
        queue.add("abc")
        queue.done(queue.get(timeout=0.1))
        assert len(queue) == 0

    def test_get_timeout(self) -> None:
        assert WorkQueue().get(timeout=0.01) is None

    def test_shut_down_wakes_waiters(self) -> None:
        queue = WorkQueue()
        results = []
        thread = threading.Thread(target=lambda: results.append(queue.get()))
        thread.start()
        queue.shut_down()
        thread.join(timeout=2)

        assert results == [None]
        assert queue.shutting_down

    def test_add_after_shut_down_is_ignored(self) -> None:
        queue = WorkQueue()
        queue.shut_down()
        queue.add("abc")
        assert len(queue) == 0


class TestDelayedAdd:
    """Test timers and backoff."""

    def test_add_after_zero_adds_immediately(self) -> None:
        queue = WorkQueue()
        queue.add_after("abc", 0)
        assert len(queue) == 1

    def test_add_after_fires(self) -> None:
        queue = WorkQueue()
        queue.add_after("abc", 0.01)
        assert queue.get(timeout=2) == "abc"

    def test_shut_down_cancels_timers(self) -> None:
        queue = WorkQueue()
        queue.add_after("abc", 0.05)
        queue.shut_down()
        assert queue.get(timeout=0.2) is None
        assert queue.pending_after() == 0

    def test_repeated_add_after_keeps_one_timer(self) -> None:
        queue = WorkQueue()
        try:
            for _ in range(10):
                queue.add_after("abc", 180.0)
            queue.add_after("xyz", 180.0)
            assert queue.pending_after() == 2
        finally:
            queue.shut_down()

    def test_earlier_deadline_replaces_pending_timer(self) -> None:
        queue = WorkQueue()
        queue.add_after("abc", 180.0)
        queue.add_after("abc", 0.01)

        assert queue.get(timeout=2) == "abc"
        assert queue.pending_after() == 0
        queue.shut_down()

    def test_later_deadline_keeps_pending_timer(self) -> None:
        queue = WorkQueue()
        queue.add_after("abc", 0.01)
        queue.add_after("abc", 180.0)

        assert queue.get(timeout=2) == "abc"
        assert queue.pending_after() == 0
        queue.shut_down()

    def test_backoff_grows_exponentially_and_caps(self) -> None:
        queue = WorkQueue(min_delay=1, max_delay=10, jitter=0)
        delays = [queue.backoff("abc") for _ in range(6)]
        assert delays == [1, 2, 4, 8, 10, 10]
        assert queue.num_requeues("abc") == 6

    def test_backoff_jitter_bounds(self) -> None:
        queue = WorkQueue(min_delay=4, max_delay=60, jitter=0.1, rng=random.Random(3))
        delay = queue.backoff("abc")
        assert 3.6 <= delay <= 4.4

    def test_forget_resets_backoff(self) -> None:
        queue = WorkQueue(min_delay=1, max_delay=10, jitter=0)
        queue.backoff("abc")
        queue.backoff("abc")
        queue.forget("abc")
        assert queue.num_requeues("abc") == 0
        assert queue.backoff("abc") == 1

    def test_add_rate_limited_uses_backoff(self) -> None:
        queue = WorkQueue(min_delay=1, max_delay=10, jitter=0)
        with patch.object(queue, "add_after") as add_after:
            queue.add_rate_limited("abc")
            queue.add_rate_limited("abc")
        assert [c.args for c in add_after.call_args_list] == [("abc", 1), ("abc", 2)]
