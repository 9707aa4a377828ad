"""Utilities for emitting Kubernetes events on tenants."""

from __future__ import annotations

from typing import Any, Callable

import kopf

from ..constants import (
    EVENT_REASON_ENSURE_FAILED,
    EVENT_REASON_FINALIZER_ADDED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RESOURCE_CREATED,
    EVENT_REASON_TEARDOWN_COMPLETED,
    EVENT_REASON_TEARDOWN_PENDING,
)

# Signature shared by emit_event and the recorders injected in tests
EventRecorder = Callable[..., None]


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Full object the event refers to (apiVersion, kind and metadata)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_failed(body: dict[str, Any], message: str, recorder: EventRecorder = emit_event) -> None:
    """Emit reconcile failed event."""
    recorder(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_finalizer_added(body: dict[str, Any], recorder: EventRecorder = emit_event) -> None:
    """Emit finalizer added event."""
    recorder(body, EVENT_REASON_FINALIZER_ADDED, "Finalizer added, teardown will run before removal")


def emit_teardown_pending(body: dict[str, Any], message: str, recorder: EventRecorder = emit_event) -> None:
    """Emit teardown pending event."""
    recorder(body, EVENT_REASON_TEARDOWN_PENDING, message)


def emit_teardown_completed(body: dict[str, Any], recorder: EventRecorder = emit_event) -> None:
    """Emit teardown completed event."""
    recorder(body, EVENT_REASON_TEARDOWN_COMPLETED, "All dependents removed, finalizer released")


def emit_resource_created(
    body: dict[str, Any], resource: str, recorder: EventRecorder = emit_event
) -> None:
    """Emit resource created event."""
    recorder(body, EVENT_REASON_RESOURCE_CREATED, f"Created {resource}")


def emit_ensure_failed(body: dict[str, Any], message: str, recorder: EventRecorder = emit_event) -> None:
    """Emit ensure failed event."""
    recorder(body, EVENT_REASON_ENSURE_FAILED, message, type_="Warning")
