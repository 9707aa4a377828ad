"""Object store capability used by the reconciler and the ensurers."""

from .base import (
    APP_ROLLOUT,
    CERTIFICATE,
    CHART_ASSIGNMENT,
    CONFIG_MAP,
    DNS_ENTRY,
    GATEWAY,
    NAMESPACE,
    ROBOT,
    ROLE_BINDING,
    SECRET,
    SERVICE,
    SERVICE_ACCOUNT,
    TENANT,
    ObjectStore,
    ResourceKind,
)
from .kubernetes import KubernetesObjectStore
from .memory import InMemoryObjectStore

__all__ = [
    "ObjectStore",
    "ResourceKind",
    "KubernetesObjectStore",
    "InMemoryObjectStore",
    "TENANT",
    "NAMESPACE",
    "SERVICE_ACCOUNT",
    "ROLE_BINDING",
    "SECRET",
    "CONFIG_MAP",
    "SERVICE",
    "DNS_ENTRY",
    "CERTIFICATE",
    "GATEWAY",
    "ROBOT",
    "APP_ROLLOUT",
    "CHART_ASSIGNMENT",
]
