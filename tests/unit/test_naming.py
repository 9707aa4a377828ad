"""Unit tests for tenant naming helpers."""

from __future__ import annotations

import random

import pytest

from tenant_operator.utils.naming import (
    app_namespace_prefix,
    certificate_name,
    default_tenant_domain,
    owns_namespace,
    random_string,
    robot_config_namespace,
    tenant_from_main_namespace,
    tenant_main_namespace,
    tenant_namespaces,
)


class TestNamespaces:
    """Test namespace derivation."""

    def test_named_tenant(self) -> None:
        assert tenant_main_namespace("abc") == "t-abc"
        assert robot_config_namespace("t-abc") == "t-abc-robot-config"
        assert tenant_namespaces("abc") == ["t-abc", "t-abc-robot-config"]
        assert app_namespace_prefix("abc") == "t-abc-app-"

    def test_default_tenant(self) -> None:
        assert tenant_main_namespace("default") == "default"
        assert robot_config_namespace("default") == "robot-config"
        assert tenant_namespaces("default") == ["default", "robot-config"]
        assert app_namespace_prefix("default") == "app-"

    def test_tenant_from_main_namespace(self) -> None:
        assert tenant_from_main_namespace("t-abc") == "abc"
        assert tenant_from_main_namespace("default") == "default"
        assert tenant_from_main_namespace("kube-system") is None
        assert tenant_from_main_namespace("t-") is None

    def test_certificate_name(self) -> None:
        assert certificate_name("abc") == "t-abc-tls"


class TestOwnsNamespace:
    """Namespaces are matched on whole name segments."""

    @pytest.mark.parametrize(
        "namespace",
        ["t-abc", "t-abc-robot-config", "t-abc-app-foo"],
    )
    def test_owned(self, namespace: str) -> None:
        assert owns_namespace("abc", namespace)

    @pytest.mark.parametrize(
        "namespace",
        ["t-abc-xyz", "t-abc-xyz-robot-config", "t-abc-xyz-app-foo", "t-abcd", "t-abc-app-", "default"],
    )
    def test_not_owned(self, namespace: str) -> None:
        assert not owns_namespace("abc", namespace)

    def test_longer_tenant_owns_its_namespaces(self) -> None:
        assert owns_namespace("abc-xyz", "t-abc-xyz-app-foo")

    def test_default_tenant(self) -> None:
        assert owns_namespace("default", "default")
        assert owns_namespace("default", "robot-config")
        assert owns_namespace("default", "app-foo")
        assert not owns_namespace("default", "t-abc")


class TestDomains:
    """Test tenant domain helpers."""

    def test_default_domain(self) -> None:
        assert default_tenant_domain("abc", ".t.example.com") == "abc.t.example.com"

    def test_override_wins(self) -> None:
        assert default_tenant_domain("abc", ".t.example.com", "robots.example.org") == "robots.example.org"

    def test_random_string(self) -> None:
        value = random_string(12, random.Random(7))
        assert len(value) == 12
        assert value.isalpha() and value.islower()
        assert value == random_string(12, random.Random(7))
