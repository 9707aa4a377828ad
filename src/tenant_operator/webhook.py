"""Admission validation for Tenant resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from . import metrics
from .constants import DEFAULT_TENANT_NAME

VALIDATED_OPERATIONS = ("CREATE", "UPDATE")


@dataclass(frozen=True)
class AdmissionResult:
    allowed: bool
    reason: str = ""


class TenantValidator:
    """Enforces that the default tenant and named tenants never coexist.

    A cluster either runs the single default tenant in the default namespace
    or any number of named tenants in their own namespaces.
    """

    def __init__(self, tenant_specific_gateways: bool):
        self.tenant_specific_gateways = tenant_specific_gateways

    def validate(
        self,
        tenant_body: dict[str, Any],
        operation: str,
        existing_tenants: Iterable[str],
    ) -> AdmissionResult:
        """Decide whether a write to a tenant is admitted.

        Args:
            tenant_body: The tenant object being written
            operation: Admission operation (CREATE, UPDATE, DELETE, CONNECT)
            existing_tenants: Names of the tenants currently stored

        Returns:
            AdmissionResult with the denial reason, if any
        """
        result = self._validate(tenant_body, operation, existing_tenants)
        metrics.admission_total.labels(
            operation=operation, result="allowed" if result.allowed else "denied"
        ).inc()
        return result

    def _validate(
        self,
        tenant_body: dict[str, Any],
        operation: str,
        existing_tenants: Iterable[str],
    ) -> AdmissionResult:
        if operation not in VALIDATED_OPERATIONS:
            return AdmissionResult(allowed=True)

        name = (tenant_body.get("metadata") or {}).get("name", "")
        existing = set(existing_tenants)

        if name == DEFAULT_TENANT_NAME:
            if existing - {DEFAULT_TENANT_NAME}:
                return AdmissionResult(False, "Delete all other tenants before creating the default tenant")
        elif DEFAULT_TENANT_NAME in existing:
            return AdmissionResult(False, "Delete default tenant before creating other tenants")

        tenant_domain = (tenant_body.get("spec") or {}).get("tenantDomain", "")
        if not self.tenant_specific_gateways and tenant_domain:
            return AdmissionResult(False, "TenantDomain must be empty when tenant specific gateways are disabled")

        return AdmissionResult(allowed=True)
