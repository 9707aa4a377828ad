"""Ensurer for the wildcard TLS certificate of a tenant."""

from __future__ import annotations

from ..builders.resources import certificate_fields
from ..constants import COND_CERTIFICATE, ISTIO_NAMESPACE, READY_STATE
from ..models import Tenant
from ..store import CERTIFICATE
from ..utils.conditions import set_condition
from ..utils.context import ReconcileContext
from ..utils.errors import StoreError, sanitize_exception
from ..utils.naming import certificate_name
from .base import WRITE_ERRORS, BaseEnsurer, desired_from


class CertificateEnsurer(BaseEnsurer):
    """Requests ``*.<tenant domain>``; the TLS secret has to live next to the Istio ingress."""

    name = "certificate"
    condition = COND_CERTIFICATE

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        domain = tenant.status.tenant_domain
        if not domain:
            raise self.fail(tenant, "Not able to create TLS certificate", "Tenant domain not set yet")

        name = certificate_name(tenant.name)
        try:
            existing = self.get_or_none(CERTIFICATE, name, ISTIO_NAMESPACE, ctx)
        except StoreError as e:
            raise self.fail(
                tenant, f"get certificate {name}", f"Get certificate *.{domain} failed: {sanitize_exception(e)}"
            ) from e

        desired = desired_from(existing, CERTIFICATE, name, ISTIO_NAMESPACE)
        spec = desired.get("spec") or {}
        spec.update(certificate_fields(tenant.name, domain)["spec"])
        desired["spec"] = spec
        try:
            stored = self.apply(tenant, CERTIFICATE, existing, desired, ctx)
        except WRITE_ERRORS as e:
            raise self.fail(
                tenant, f"update {name} certificate", f"Update certificate *.{domain} failed: {sanitize_exception(e)}"
            ) from e

        state = (stored.get("status") or {}).get("state", "")
        if state == READY_STATE:
            self.succeed(tenant, f"TLS Certificate for domain *.{domain} created")
        else:
            set_condition(
                tenant.status.conditions,
                self.condition,
                False,
                f'TLS Certificate for domain *.{domain} created, but in state "{state}"',
            )
