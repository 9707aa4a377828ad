"""Ensurer for the wildcard DNS entry of a tenant."""

from __future__ import annotations

import random
from typing import Any

from ..builders.resources import dns_entry_fields
from ..config import OperatorConfig
from ..constants import (
    COND_DOMAIN,
    DNS_ENTRY_NAME,
    ISTIO_LB_SERVICE_NAME,
    ISTIO_NAMESPACE,
    MAX_TENANT_DOMAIN_LENGTH,
    READY_STATE,
)
from ..models import Tenant
from ..store import DNS_ENTRY, SERVICE, ObjectStore
from ..utils.conditions import set_condition
from ..utils.context import ReconcileContext
from ..utils.errors import DomainGenerationError, StoreError, sanitize_exception
from ..utils.events import EventRecorder, emit_event
from ..utils.naming import default_tenant_domain, random_string
from .base import WRITE_ERRORS, BaseEnsurer, desired_from


def load_balancer_target(service: dict[str, Any]) -> str:
    """First IP or hostname announced by a load balancer service, empty if none."""
    ingress = ((service.get("status") or {}).get("loadBalancer") or {}).get("ingress") or []
    for entry in ingress:
        if entry.get("ip"):
            return entry["ip"]
        if entry.get("hostname"):
            return entry["hostname"]
    return ""


class DomainEnsurer(BaseEnsurer):
    """Points ``*.<tenant domain>`` at the Istio ingress load balancer.

    Tenant domains are used as certificate common names, so they are kept
    within MAX_TENANT_DOMAIN_LENGTH. Longer names fall back to the domain
    already recorded in status or to a generated random label.
    """

    name = "domain"
    condition = COND_DOMAIN

    def __init__(
        self,
        store: ObjectStore,
        config: OperatorConfig,
        event_recorder: EventRecorder = emit_event,
        rng: random.Random | None = None,
    ):
        super().__init__(store, config, event_recorder)
        self.rng = rng or config.make_random()

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        try:
            existing = self.get_or_none(DNS_ENTRY, DNS_ENTRY_NAME, tenant.main_namespace, ctx)
        except StoreError as e:
            raise self.fail(
                tenant, f"get DNS entry {DNS_ENTRY_NAME}", f"Get DNS entry failed: {sanitize_exception(e)}"
            ) from e

        ctx.check("get Istio loadbalancer service")
        try:
            service = self.store.get(SERVICE, ISTIO_LB_SERVICE_NAME, ISTIO_NAMESPACE, timeout=ctx.remaining())
        except StoreError as e:
            raise self.fail(
                tenant,
                "get Istio loadbalancer service",
                f"Get Istio loadbalancer service failed: {sanitize_exception(e)}",
            ) from e

        target = load_balancer_target(service)
        if not target:
            raise self.fail(
                tenant, "get Istio loadbalancer service", "No hostname or IP in Istio loadbalancer service found"
            )

        try:
            domain = self.resolve_domain(tenant)
        except DomainGenerationError as e:
            raise self.fail(
                tenant, "generate tenant domain", f"Generate tenant domain failed: {sanitize_exception(e)}"
            ) from e

        desired = desired_from(existing, DNS_ENTRY, DNS_ENTRY_NAME, tenant.main_namespace)
        fields = dns_entry_fields(domain, target)
        annotations = desired["metadata"].get("annotations") or {}
        annotations.update(fields["annotations"])
        desired["metadata"]["annotations"] = annotations
        spec = desired.get("spec") or {}
        spec.update(fields["spec"])
        desired["spec"] = spec
        try:
            stored = self.apply(tenant, DNS_ENTRY, existing, desired, ctx)
        except WRITE_ERRORS as e:
            raise self.fail(
                tenant, f"update {DNS_ENTRY_NAME} DNS entry", f"Update DNS entry failed: {sanitize_exception(e)}"
            ) from e

        tenant.status.tenant_domain = domain

        state = (stored.get("status") or {}).get("state", "")
        if state == READY_STATE:
            self.succeed(tenant, f"DNS entry for domain *.{domain} created")
        else:
            set_condition(
                tenant.status.conditions,
                self.condition,
                False,
                f'DNS entry for domain *.{domain} created, but in state "{state}"',
            )

    def resolve_domain(self, tenant: Tenant) -> str:
        """Domain to publish for the tenant.

        Raises:
            DomainGenerationError: If no domain fitting the length bound can be generated
        """
        subdomain = self.config.tenant_subdomain
        domain = default_tenant_domain(tenant.name, subdomain, tenant.tenant_domain)
        if len(domain) <= MAX_TENANT_DOMAIN_LENGTH:
            return domain

        recorded = tenant.status.tenant_domain
        if recorded.endswith(subdomain) and len(recorded) <= MAX_TENANT_DOMAIN_LENGTH:
            return recorded

        self.log_info(
            tenant,
            f"Default tenant domain *.{domain} exceeds the maximum common name length, generating random domain",
            reason="DomainGenerated",
        )
        return self.generate_domain()

    def generate_domain(self) -> str:
        """Random domain of exactly MAX_TENANT_DOMAIN_LENGTH characters below the tenant subdomain."""
        subdomain = self.config.tenant_subdomain
        if len(subdomain) > MAX_TENANT_DOMAIN_LENGTH - 1:
            raise DomainGenerationError(
                f"Cannot generate domain name. Tenant subdomain {subdomain!r} is longer than "
                f"{MAX_TENANT_DOMAIN_LENGTH - 1} characters"
            )
        return random_string(MAX_TENANT_DOMAIN_LENGTH - len(subdomain), self.rng) + subdomain
