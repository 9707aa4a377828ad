"""Ensurer for the Istio gateway of a tenant."""

from __future__ import annotations

from ..builders.resources import gateway_fields
from ..constants import COND_GATEWAY, GATEWAY_NAME
from ..models import Tenant
from ..store import GATEWAY
from ..utils.context import ReconcileContext
from ..utils.errors import StoreError, sanitize_exception
from .base import WRITE_ERRORS, BaseEnsurer, desired_from


class GatewayEnsurer(BaseEnsurer):
    name = "gateway"
    condition = COND_GATEWAY

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        domain = tenant.status.tenant_domain
        if not domain:
            raise self.fail(tenant, "Not able to create Istio gateway", "Tenant domain not set yet")

        namespace = tenant.main_namespace
        try:
            existing = self.get_or_none(GATEWAY, GATEWAY_NAME, namespace, ctx)
        except StoreError as e:
            raise self.fail(
                tenant,
                f"get Istio gateway {GATEWAY_NAME}",
                f"Get Istio gateway {GATEWAY_NAME} failed: {sanitize_exception(e)}",
            ) from e

        desired = desired_from(existing, GATEWAY, GATEWAY_NAME, namespace)
        spec = desired.get("spec") or {}
        spec.update(gateway_fields(tenant.name, domain)["spec"])
        desired["spec"] = spec
        try:
            self.apply(tenant, GATEWAY, existing, desired, ctx)
        except WRITE_ERRORS as e:
            raise self.fail(
                tenant,
                f"update {GATEWAY_NAME} Istio gateway",
                f"Update Istio gateway {GATEWAY_NAME} failed: {sanitize_exception(e)}",
            ) from e

        tenant.status.gateway = f"{namespace}/{GATEWAY_NAME}"
        self.succeed(tenant, f"Istio gateway for domain *.{domain} created")
