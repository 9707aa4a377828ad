"""Unit tests for tenant admission validation."""

from __future__ import annotations

import pytest

from conftest import tenant_body
from tenant_operator.webhook import TenantValidator


class TestDefaultTenantRules:
    """The default tenant and named tenants are mutually exclusive."""

    def test_first_default_tenant(self) -> None:
        result = TenantValidator(False).validate(tenant_body("default"), "CREATE", [])
        assert result.allowed

    def test_default_tenant_with_others(self) -> None:
        result = TenantValidator(False).validate(tenant_body("default"), "CREATE", ["abc"])
        assert not result.allowed
        assert result.reason == "Delete all other tenants before creating the default tenant"

    def test_update_default_tenant_alone(self) -> None:
        result = TenantValidator(False).validate(tenant_body("default"), "UPDATE", ["default"])
        assert result.allowed

    def test_named_tenant_with_default(self) -> None:
        result = TenantValidator(False).validate(tenant_body("abc"), "CREATE", ["default"])
        assert not result.allowed
        assert result.reason == "Delete default tenant before creating other tenants"

    def test_named_tenants(self) -> None:
        result = TenantValidator(False).validate(tenant_body("abc"), "CREATE", ["xyz", "abc"])
        assert result.allowed

    @pytest.mark.parametrize("operation", ["DELETE", "CONNECT"])
    def test_other_operations_are_allowed(self, operation: str) -> None:
        result = TenantValidator(False).validate(tenant_body("abc"), operation, ["default"])
        assert result.allowed


class TestTenantDomainRule:
    """A declared tenant domain needs tenant specific gateways."""

    def test_domain_without_gateways(self) -> None:
        body = tenant_body("abc", tenant_domain="robots.example.org")
        result = TenantValidator(False).validate(body, "CREATE", [])
        assert not result.allowed
        assert result.reason == "TenantDomain must be empty when tenant specific gateways are disabled"

    def test_domain_with_gateways(self) -> None:
        body = tenant_body("abc", tenant_domain="robots.example.org")
        assert TenantValidator(True).validate(body, "UPDATE", ["abc"]).allowed

    def test_no_domain_without_gateways(self) -> None:
        assert TenantValidator(False).validate(tenant_body("abc"), "CREATE", []).allowed
