"""Ensurer for the tenant namespaces."""

from __future__ import annotations

from ..constants import COND_NAMESPACE, LABEL_TENANT
from ..models import Tenant
from ..store import NAMESPACE
from ..utils.context import ReconcileContext
from ..utils.errors import NamespaceDeletionError, StoreError, sanitize_exception
from ..utils.naming import tenant_namespaces
from .base import WRITE_ERRORS, BaseEnsurer, desired_from


class NamespaceEnsurer(BaseEnsurer):
    """Creates the main and robot-config namespaces of a tenant.

    The default tenant lives in the pre-existing ``default`` namespace and
    gets nothing created.
    """

    name = "namespace"
    condition = COND_NAMESPACE

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        if tenant.is_default:
            self.succeed(tenant, "Default tenant uses default namespace")
            return

        for namespace in tenant_namespaces(tenant.name):
            try:
                existing = self.get_or_none(NAMESPACE, namespace, None, ctx)
            except StoreError as e:
                raise self.fail(
                    tenant, "get namespace", f"Getting namespace {namespace} failed: {sanitize_exception(e)}"
                ) from e

            if existing is not None and existing["metadata"].get("deletionTimestamp"):
                self.fail(tenant, "ensure namespace", f"Namespace {namespace} in deletion")
                raise NamespaceDeletionError(
                    f"namespace {namespace!r} was marked for deletion at "
                    f"{existing['metadata']['deletionTimestamp']}, skipping"
                )

            desired = desired_from(existing, NAMESPACE, namespace, None)
            labels = desired["metadata"].get("labels") or {}
            labels[LABEL_TENANT] = tenant.name
            desired["metadata"]["labels"] = labels
            try:
                self.apply(tenant, NAMESPACE, existing, desired, ctx)
            except WRITE_ERRORS as e:
                raise self.fail(
                    tenant, "update namespace", f"Updating namespace {namespace} failed: {sanitize_exception(e)}"
                ) from e

        self.succeed(tenant, "Tenant namespaces created")
