"""Routing of watch events on secondary resources to tenant reconcile keys.

All functions are pure: they see the event object and, where needed, a
snapshot of the known tenant names, and return the set of tenant names to
reconcile.
"""

from __future__ import annotations

from typing import Any, Iterable

from .constants import API_GROUP, KIND_TENANT, ROBOT_CONFIG_CLOUD_NAMESPACE, ROBOT_SETUP_CONFIGMAP
from .utils.naming import owns_namespace, tenant_from_main_namespace

# Event types as reported by kopf watch streams
ADDED = "ADDED"
MODIFIED = "MODIFIED"
DELETED = "DELETED"


def tenants_from_owner(body: dict[str, Any]) -> set[str]:
    """Tenant owning the object through its owner references, if any."""
    result = set()
    for ref in (body.get("metadata") or {}).get("ownerReferences") or []:
        group = (ref.get("apiVersion") or "").split("/", 1)[0]
        if ref.get("kind") == KIND_TENANT and group == API_GROUP and ref.get("name"):
            result.add(ref["name"])
    return result


def tenants_from_namespace(event_type: str | None, name: str, tenant_names: Iterable[str]) -> set[str]:
    """Tenants owning a namespace that was added or deleted.

    Modifications are ignored; the reconciler labels namespaces itself.
    """
    if event_type not in (ADDED, DELETED, None):
        return set()
    return {tenant for tenant in tenant_names if owns_namespace(tenant, name)}


def is_robot_setup_template(body: dict[str, Any]) -> bool:
    meta = body.get("metadata") or {}
    return meta.get("namespace") == ROBOT_CONFIG_CLOUD_NAMESPACE and meta.get("name") == ROBOT_SETUP_CONFIGMAP


def tenants_from_config_map(body: dict[str, Any], tenant_names: Iterable[str]) -> set[str]:
    """Changes to the shared robot-setup template concern every tenant."""
    if is_robot_setup_template(body):
        return set(tenant_names)
    return tenants_from_owner(body)


def tenants_from_robot(body: dict[str, Any]) -> set[str]:
    """Tenant whose main namespace holds the robot."""
    namespace = (body.get("metadata") or {}).get("namespace") or ""
    tenant = tenant_from_main_namespace(namespace)
    return {tenant} if tenant else set()


def tenants_from_tenant(body: dict[str, Any]) -> set[str]:
    name = (body.get("metadata") or {}).get("name")
    return {name} if name else set()


def needs_tenant_names(kind: str, event_type: str | None, body: dict[str, Any]) -> bool:
    """Whether routing this event needs the current tenant names."""
    if kind == "Namespace":
        return event_type in (ADDED, DELETED, None)
    if kind == "ConfigMap":
        return is_robot_setup_template(body)
    return False


def route(
    kind: str,
    event_type: str | None,
    body: dict[str, Any],
    tenant_names: Iterable[str] = (),
) -> set[str]:
    """Tenant names to enqueue for a watch event on an object of ``kind``."""
    if kind == KIND_TENANT:
        return tenants_from_tenant(body)
    if kind == "Namespace":
        name = (body.get("metadata") or {}).get("name") or ""
        return tenants_from_namespace(event_type, name, tenant_names)
    if kind == "ConfigMap":
        return tenants_from_config_map(body, tenant_names)
    if kind == "Robot":
        return tenants_from_robot(body)
    return tenants_from_owner(body)
