"""Models for Tenant resources."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from .constants import API_GROUP_VERSION, DEFAULT_TENANT_NAME, KIND_TENANT
from .utils.naming import robot_config_namespace, tenant_main_namespace


@dataclass
class TenantStatus:
    """Observed state of a tenant."""

    robots: int = 0
    robot_clusters: int = 0
    gateway: str = ""
    tenant_domain: str = ""
    tenant_namespaces: list[str] = field(default_factory=list)
    conditions: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, status: dict[str, Any] | None) -> TenantStatus:
        status = status or {}
        return cls(
            robots=status.get("robots", 0),
            robot_clusters=status.get("robotClusters", 0),
            gateway=status.get("gateway", ""),
            tenant_domain=status.get("tenantDomain", ""),
            tenant_namespaces=list(status.get("tenantNamespaces") or []),
            conditions=copy.deepcopy(status.get("conditions") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "robots": self.robots,
            "robotClusters": self.robot_clusters,
            "gateway": self.gateway,
            "tenantDomain": self.tenant_domain,
            "tenantNamespaces": list(self.tenant_namespaces),
            "conditions": copy.deepcopy(self.conditions),
        }


@dataclass
class Tenant:
    """A cluster-scoped Tenant resource.

    Only the fields the reconciler reads are modelled; ``body`` keeps the raw
    API object so updates round-trip unknown fields.
    """

    name: str
    uid: str = ""
    resource_version: str = ""
    generation: int = 0
    finalizers: list[str] = field(default_factory=list)
    deletion_timestamp: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    tenant_domain: str = ""
    status: TenantStatus = field(default_factory=TenantStatus)
    body: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> Tenant:
        meta = body.get("metadata") or {}
        spec = body.get("spec") or {}
        return cls(
            name=meta["name"],
            uid=meta.get("uid", ""),
            resource_version=meta.get("resourceVersion", ""),
            generation=meta.get("generation", 0),
            finalizers=list(meta.get("finalizers") or []),
            deletion_timestamp=meta.get("deletionTimestamp"),
            labels=dict(meta.get("labels") or {}),
            tenant_domain=spec.get("tenantDomain", ""),
            status=TenantStatus.from_dict(body.get("status")),
            body=copy.deepcopy(body),
        )

    def to_body(self) -> dict[str, Any]:
        """Raw API object reflecting the current field values."""
        body = copy.deepcopy(self.body)
        body["apiVersion"] = API_GROUP_VERSION
        body["kind"] = KIND_TENANT
        meta = body.setdefault("metadata", {})
        meta["name"] = self.name
        if self.uid:
            meta["uid"] = self.uid
        if self.resource_version:
            meta["resourceVersion"] = self.resource_version
        meta["finalizers"] = list(self.finalizers)
        if self.labels:
            meta["labels"] = dict(self.labels)
        body["status"] = self.status.to_dict()
        return body

    @property
    def is_default(self) -> bool:
        return self.name == DEFAULT_TENANT_NAME

    @property
    def is_deleting(self) -> bool:
        return self.deletion_timestamp is not None

    @property
    def main_namespace(self) -> str:
        return tenant_main_namespace(self.name)

    @property
    def robot_config_namespace(self) -> str:
        return robot_config_namespace(self.main_namespace)

    def owner_reference(self) -> dict[str, Any]:
        """Controller owner reference pointing at this tenant."""
        return {
            "apiVersion": API_GROUP_VERSION,
            "kind": KIND_TENANT,
            "name": self.name,
            "uid": self.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }
