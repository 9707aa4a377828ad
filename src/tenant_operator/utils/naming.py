"""Deterministic names derived from a tenant name."""

from __future__ import annotations

import random
import string

from ..constants import (
    APP_NAMESPACE_INFIX,
    DEFAULT_NAMESPACE,
    DEFAULT_TENANT_NAME,
    ROBOT_CONFIG_CLOUD_NAMESPACE,
    TENANT_PREFIX,
)


def tenant_main_namespace(tenant_name: str) -> str:
    """Main namespace of a tenant, where all its custom resources are stored."""
    if tenant_name == DEFAULT_TENANT_NAME:
        return DEFAULT_NAMESPACE
    return f"{TENANT_PREFIX}{tenant_name}"


def robot_config_namespace(main_namespace: str) -> str:
    """Namespace holding the robot configuration of the tenant owning ``main_namespace``."""
    if main_namespace == DEFAULT_NAMESPACE:
        return ROBOT_CONFIG_CLOUD_NAMESPACE
    return f"{main_namespace}-{ROBOT_CONFIG_CLOUD_NAMESPACE}"


def app_namespace_prefix(tenant_name: str) -> str:
    """Prefix of the namespaces apps of a tenant are deployed to."""
    if tenant_name == DEFAULT_TENANT_NAME:
        return APP_NAMESPACE_INFIX
    return f"{tenant_main_namespace(tenant_name)}-{APP_NAMESPACE_INFIX}"


def tenant_namespaces(tenant_name: str) -> list[str]:
    """Namespaces created for a tenant, main namespace first."""
    main = tenant_main_namespace(tenant_name)
    return [main, robot_config_namespace(main)]


def owns_namespace(tenant_name: str, namespace: str) -> bool:
    """Whether ``namespace`` belongs to the tenant.

    Matches whole name segments: the main namespace, the robot-config
    namespace, or an app namespace below ``<main>-app-``. Tenant "abc" does
    not own "t-abc-xyz-app-1", which belongs to tenant "abc-xyz".
    """
    if namespace in tenant_namespaces(tenant_name):
        return True
    prefix = app_namespace_prefix(tenant_name)
    return namespace.startswith(prefix) and len(namespace) > len(prefix)


def tenant_from_main_namespace(namespace: str) -> str | None:
    """Inverse of ``tenant_main_namespace``; None for namespaces that are no main namespace."""
    if namespace == DEFAULT_NAMESPACE:
        return DEFAULT_TENANT_NAME
    if namespace.startswith(TENANT_PREFIX) and len(namespace) > len(TENANT_PREFIX):
        return namespace[len(TENANT_PREFIX):]
    return None


def certificate_name(tenant_name: str) -> str:
    """Name of the TLS certificate and of the secret it is stored in."""
    return f"{TENANT_PREFIX}{tenant_name}-tls"


def default_tenant_domain(tenant_name: str, tenant_subdomain: str, override: str = "") -> str:
    """Domain of a tenant: the declared override or ``<name><tenant_subdomain>``."""
    if override:
        return override
    return f"{tenant_name}{tenant_subdomain}"


def random_string(n: int, rng: random.Random) -> str:
    """Random label of ``n`` lowercase ASCII letters."""
    return "".join(rng.choice(string.ascii_lowercase) for _ in range(n))
