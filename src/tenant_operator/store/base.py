"""Object store interface and the resource kinds the operator touches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from ..constants import API_GROUP, API_VERSION, KIND_TENANT, PLURAL_TENANTS


@dataclass(frozen=True)
class ResourceKind:
    """Group/version/kind of an API resource plus the facts needed to address it."""

    group: str
    version: str
    kind: str
    plural: str
    namespaced: bool = True

    @property
    def api_version(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    @property
    def is_core(self) -> bool:
        """Served by a typed client API rather than CustomObjectsApi."""
        return self.group in ("", "rbac.authorization.k8s.io")

    def __str__(self) -> str:
        return self.kind


TENANT = ResourceKind(API_GROUP, API_VERSION, KIND_TENANT, PLURAL_TENANTS, namespaced=False)
NAMESPACE = ResourceKind("", "v1", "Namespace", "namespaces", namespaced=False)
SERVICE_ACCOUNT = ResourceKind("", "v1", "ServiceAccount", "serviceaccounts")
SECRET = ResourceKind("", "v1", "Secret", "secrets")
CONFIG_MAP = ResourceKind("", "v1", "ConfigMap", "configmaps")
SERVICE = ResourceKind("", "v1", "Service", "services")
ROLE_BINDING = ResourceKind("rbac.authorization.k8s.io", "v1", "RoleBinding", "rolebindings")
DNS_ENTRY = ResourceKind("dns.gardener.cloud", "v1alpha1", "DNSEntry", "dnsentries")
CERTIFICATE = ResourceKind("cert.gardener.cloud", "v1alpha1", "Certificate", "certificates")
GATEWAY = ResourceKind("networking.istio.io", "v1beta1", "Gateway", "gateways")
ROBOT = ResourceKind("registry.cloudrobotics.com", "v1alpha1", "Robot", "robots")
APP_ROLLOUT = ResourceKind("apps.cloudrobotics.com", "v1alpha1", "AppRollout", "approllouts")
CHART_ASSIGNMENT = ResourceKind("apps.cloudrobotics.com", "v1alpha1", "ChartAssignment", "chartassignments")


class ObjectStore(Protocol):
    """Protocol defining the cluster object store operations.

    Objects are plain dicts shaped like the API's JSON representation.
    All operations raise NotFoundError, ConflictError or StoreError.
    """

    def get(
        self, kind: ResourceKind, name: str, namespace: str | None = None, timeout: float | None = None
    ) -> dict[str, Any]:
        """Read a single object."""
        ...

    def list(
        self, kind: ResourceKind, namespace: str | None = None, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        """List objects, across all namespaces when ``namespace`` is None."""
        ...

    def create(self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        """Create an object and return it as stored."""
        ...

    def update(self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        """Replace an object; ``metadata.resourceVersion`` guards concurrent writes."""
        ...

    def update_status(
        self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """Replace only the status subresource of an object."""
        ...

    def delete(
        self, kind: ResourceKind, name: str, namespace: str | None = None, timeout: float | None = None
    ) -> None:
        """Delete an object."""
        ...
