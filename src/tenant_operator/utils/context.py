"""Correlation IDs and per-pass cancellation for reconcile passes."""

from __future__ import annotations

import contextvars
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from .errors import ReconcileCancelledError

# Context variable for storing correlation ID
correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(corr_id: str) -> None:
    """Set the correlation ID in the current context."""
    correlation_id.set(corr_id)


def get_correlation_id() -> str | None:
    """Get the correlation ID from the current context."""
    return correlation_id.get()


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:16]


@contextmanager
def with_correlation_id(corr_id: str | None = None) -> Iterator[str]:
    """Context manager to set a correlation ID for the duration of a block.

    Args:
        corr_id: Correlation ID to use, a new one is generated if omitted

    Yields:
        The correlation ID
    """
    corr_id = corr_id or new_correlation_id()
    token = correlation_id.set(corr_id)
    try:
        yield corr_id
    finally:
        correlation_id.reset(token)


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Get a dictionary of context values.

    Args:
        additional: Additional key-value pairs to include

    Returns:
        Dictionary with context values including correlation_id
    """
    ctx: dict[str, Any] = {}

    corr_id = get_correlation_id()
    if corr_id:
        ctx["correlation_id"] = corr_id

    if additional:
        ctx.update(additional)

    return ctx


class ReconcileContext:
    """Deadline and cancellation token for a single reconcile pass.

    Every store call made during the pass receives ``remaining()`` as its
    request timeout, and the reconciler calls ``check()`` between steps.
    """

    def __init__(
        self,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
        clock: Any = time.monotonic,
    ) -> None:
        self._clock = clock
        self._deadline = clock() + timeout if timeout is not None else None
        self._cancel_event = cancel_event or threading.Event()

    @classmethod
    def background(cls) -> ReconcileContext:
        """Context without deadline, cancelled only explicitly."""
        return cls()

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left until the deadline, None if there is none."""
        if self._deadline is None:
            return None
        return max(self._deadline - self._clock(), 0.0)

    def check(self, operation: str = "reconcile") -> None:
        """Raise if the pass was cancelled or ran past its deadline.

        Raises:
            ReconcileCancelledError: If the pass must be aborted
        """
        if self.cancelled:
            raise ReconcileCancelledError(f"{operation}: reconcile pass cancelled")
        if self.expired:
            raise ReconcileCancelledError(f"{operation}: reconcile deadline exceeded")
