"""Utility functions for the Tenant Operator."""

from .conditions import (
    false_conditions,
    get_condition,
    in_condition,
    remove_condition,
    set_condition,
)
from .context import (
    ReconcileContext,
    get_context_dict,
    get_correlation_id,
    set_correlation_id,
    with_correlation_id,
)
from .events import emit_event
from .rate_limit import RateLimiter, is_rate_limit_error

__all__ = [
    "set_condition",
    "get_condition",
    "in_condition",
    "remove_condition",
    "false_conditions",
    "emit_event",
    "RateLimiter",
    "is_rate_limit_error",
    "ReconcileContext",
    "set_correlation_id",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]
