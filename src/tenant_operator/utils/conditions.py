"""Utilities for managing tenant status conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def _status_value(status: bool | str) -> str:
    if isinstance(status, bool):
        return "True" if status else "False"
    return status


def _timestamp(now: datetime | None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%SZ")


def set_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: bool | str,
    message: str,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Add or update a condition. Existing conditions are detected by type.

    ``lastUpdateTime`` moves whenever status or message change,
    ``lastTransitionTime`` only when the status changes. Conditions keep
    their insertion order.

    Args:
        conditions: List of existing conditions, updated in place
        condition_type: Type of condition
        status: True/False, or the literal "True"/"False"
        message: Human-readable message
        now: Timestamp to record, defaults to the current time

    Returns:
        The updated list of conditions
    """
    value = _status_value(status)
    timestamp = _timestamp(now)

    for cond in conditions:
        if cond.get("type") != condition_type:
            continue
        if cond.get("status") != value or cond.get("message") != message:
            cond["lastUpdateTime"] = timestamp
        if cond.get("status") != value:
            cond["lastTransitionTime"] = timestamp
        cond["status"] = value
        cond["message"] = message
        return conditions

    conditions.append({
        "type": condition_type,
        "status": value,
        "message": message,
        "lastUpdateTime": timestamp,
        "lastTransitionTime": timestamp,
    })
    return conditions


def get_condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, if present."""
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


def in_condition(conditions: list[dict[str, Any]], condition_type: str) -> bool:
    """True if a condition of the given type exists with status True."""
    cond = get_condition(conditions, condition_type)
    return cond is not None and cond.get("status") == "True"


def remove_condition(conditions: list[dict[str, Any]], condition_type: str) -> list[dict[str, Any]]:
    """Drop the condition of the given type, keeping the order of the others."""
    conditions[:] = [cond for cond in conditions if cond.get("type") != condition_type]
    return conditions


def false_conditions(conditions: list[dict[str, Any]]) -> list[str]:
    """Types of all conditions currently reporting False."""
    return [cond["type"] for cond in conditions if cond.get("status") != "True"]
