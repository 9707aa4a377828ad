"""Structured logging configuration for the Tenant Operator."""

import json
import logging
import sys
from typing import Any

from .utils.context import get_context_dict

CONTROLLER_NAME = "tenant-operator"


def setup_structured_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def log_resource_event(
    logger: logging.Logger,
    resource_kind: str,
    resource_name: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    namespace: str = "",
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = {
        "controller": CONTROLLER_NAME,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(get_context_dict(kwargs))
    logger.log(level, json.dumps(sanitize_secrets(log_data), default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Remove secret fields from log data."""
    secret_fields = {"dockerconfigjson", "data", "token", "password"}
    sanitized = log_data.copy()
    for field in secret_fields:
        if field in sanitized:
            sanitized[field] = "***REDACTED***"
    return sanitized
