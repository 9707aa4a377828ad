"""Shared fixtures for the unit tests."""

from __future__ import annotations

import random
from typing import Any

import pytest

from tenant_operator.config import OperatorConfig
from tenant_operator.constants import API_GROUP_VERSION, IMAGE_PULL_SECRET, KIND_TENANT
from tenant_operator.store import CONFIG_MAP, NAMESPACE, SECRET, SERVICE, SERVICE_ACCOUNT, TENANT
from tenant_operator.store.memory import InMemoryObjectStore


class RecordedEvents:
    """Event recorder collecting (reason, message, type) tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, str]] = []

    def __call__(self, body: dict[str, Any], reason: str, message: str, type_: str = "Normal") -> None:
        self.events.append((reason, message, type_))

    def reasons(self) -> list[str]:
        return [reason for reason, _, _ in self.events]


def tenant_body(name: str, tenant_domain: str = "", **metadata: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_TENANT,
        "metadata": {"name": name, **metadata},
        "spec": {},
    }
    if tenant_domain:
        body["spec"]["tenantDomain"] = tenant_domain
    return body


def seed_cluster(store: InMemoryObjectStore, lb_ip: str = "10.0.0.1") -> None:
    """Objects every cluster provides before tenants are reconciled."""
    store.seed(NAMESPACE, {"metadata": {"name": "default"}})
    store.seed(NAMESPACE, {"metadata": {"name": "robot-config"}})
    store.seed(SECRET, {
        "metadata": {"name": IMAGE_PULL_SECRET, "namespace": "default"},
        "type": "kubernetes.io/dockerconfigjson",
        "data": {".dockerconfigjson": "e30="},
    })
    store.seed(CONFIG_MAP, {
        "metadata": {"name": "robot-setup", "namespace": "robot-config"},
        "data": {"project": "my-project", "domain": "example.com"},
    })
    store.seed(SERVICE, {
        "metadata": {"name": "istio-ingressgateway", "namespace": "istio-system"},
        "status": {"loadBalancer": {"ingress": [{"ip": lb_ip}]}},
    })


def seed_default_service_accounts(store: InMemoryObjectStore, *namespaces: str) -> None:
    for namespace in namespaces:
        store.seed(SERVICE_ACCOUNT, {"metadata": {"name": "default", "namespace": namespace}})


@pytest.fixture
def config() -> OperatorConfig:
    return OperatorConfig(domain="example.com", default_gateway="default/cloud-gateway", random_seed=1)


@pytest.fixture
def gateway_config() -> OperatorConfig:
    return OperatorConfig(domain="example.com", tenant_specific_gateways=True, random_seed=1)


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def events() -> RecordedEvents:
    return RecordedEvents()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def seeded_store(store: InMemoryObjectStore) -> InMemoryObjectStore:
    seed_cluster(store)
    return store


def add_tenant(store: InMemoryObjectStore, name: str, **kwargs: Any) -> dict[str, Any]:
    return store.seed(TENANT, tenant_body(name, **kwargs))
