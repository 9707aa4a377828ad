"""Error taxonomy and error message sanitization."""

from __future__ import annotations

import re


class TenantOperatorError(Exception):
    """Base class for all operator errors."""


# Object store errors


class StoreError(TenantOperatorError):
    """Transient failure talking to the object store (network, server error, throttling)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(StoreError):
    """The requested object does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status=404)


class ConflictError(StoreError):
    """Optimistic concurrency check failed or the object already exists."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status=409)


# Recoverable domain conditions: reflected as a False condition and rechecked soon,
# never reported as a reconcile failure.


class RecoverableError(TenantOperatorError):
    """A dependent resource is in a transient state that resolves on its own."""


class NamespaceDeletionError(RecoverableError):
    """A namespace could not be ensured because a previous one of the same name is
    still being deleted. This may last seconds or minutes if the namespace contains
    resources that are slow to delete.
    """


class MissingServiceAccountError(RecoverableError):
    """The default service account of a namespace has not been created yet, so
    the image pull secret cannot be attached to it.
    """


# Hard errors


class EnsureError(TenantOperatorError):
    """An ensurer failed. Carries the operation name and the tenant identity."""

    def __init__(self, operation: str, tenant: str, message: str) -> None:
        super().__init__(f"{operation} for tenant {tenant}: {message}")
        self.operation = operation
        self.tenant = tenant


class DomainGenerationError(TenantOperatorError):
    """A tenant domain that fits into a certificate common name cannot be generated."""


class OwnershipError(TenantOperatorError):
    """The object is already controlled by another owner."""


class ReconcileCancelledError(TenantOperatorError):
    """The reconcile pass was cancelled or exceeded its deadline."""


class ReconcileError(TenantOperatorError):
    """Top-level reconcile failure; the controller retries it with backoff."""

    def __init__(self, operation: str, tenant: str, cause: BaseException) -> None:
        super().__init__(f"{operation} of tenant {tenant}: {sanitize_exception(cause)}")
        self.operation = operation
        self.tenant = tenant
        self.cause = cause


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"authorization[:\s]+(bearer\s+)?([A-Za-z0-9\-_\.=]+)",
    r"\.dockerconfigjson[\"':\s]+([A-Za-z0-9/+=]+)",
    r"eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "token",
    "credentials",
    "dockerconfigjson",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove credentials and tokens.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}[\"']?[:=]\s*[\"']?([^\s,;\)\"']+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))
