"""Unit tests for the in-memory object store."""

from __future__ import annotations

import pytest

from tenant_operator.store import NAMESPACE, SECRET, TENANT
from tenant_operator.store.memory import InMemoryObjectStore
from tenant_operator.utils.errors import ConflictError, NotFoundError, StoreError


def secret(name: str = "s", namespace: str = "t-abc") -> dict:
    return {"metadata": {"name": name, "namespace": namespace}, "data": {"k": "dg=="}}


class TestCrud:
    """Test create, get, update and list."""

    def test_create_and_get(self) -> None:
        store = InMemoryObjectStore()
        created = store.create(SECRET, secret())

        assert created["metadata"]["resourceVersion"]
        assert created["metadata"]["uid"]
        assert created["apiVersion"] == "v1"
        assert created["kind"] == "Secret"
        assert store.get(SECRET, "s", "t-abc") == created

    def test_get_returns_copies(self) -> None:
        store = InMemoryObjectStore()
        store.create(SECRET, secret())
        store.get(SECRET, "s", "t-abc")["data"]["k"] = "changed"
        assert store.get(SECRET, "s", "t-abc")["data"]["k"] == "dg=="

    def test_get_missing(self) -> None:
        with pytest.raises(NotFoundError):
            InMemoryObjectStore().get(SECRET, "s", "t-abc")

    def test_create_existing_conflicts(self) -> None:
        store = InMemoryObjectStore()
        store.create(SECRET, secret())
        with pytest.raises(ConflictError):
            store.create(SECRET, secret())

    def test_create_namespaced_without_namespace(self) -> None:
        with pytest.raises(StoreError) as exc_info:
            InMemoryObjectStore().create(SECRET, {"metadata": {"name": "s"}})
        assert exc_info.value.status == 400

    def test_create_in_terminating_namespace(self) -> None:
        store = InMemoryObjectStore()
        store.seed(NAMESPACE, {"metadata": {"name": "t-abc", "deletionTimestamp": "2024-01-01T00:00:00Z"}})
        with pytest.raises(StoreError) as exc_info:
            store.create(SECRET, secret())
        assert exc_info.value.status == 403

    def test_update_bumps_version(self) -> None:
        store = InMemoryObjectStore()
        created = store.create(SECRET, secret())
        created["data"]["k"] = "eA=="
        updated = store.update(SECRET, created)

        assert updated["metadata"]["resourceVersion"] != created["metadata"]["resourceVersion"]
        assert store.get(SECRET, "s", "t-abc")["data"]["k"] == "eA=="

    def test_update_stale_version_conflicts(self) -> None:
        store = InMemoryObjectStore()
        created = store.create(SECRET, secret())
        store.update(SECRET, created)
        with pytest.raises(ConflictError):
            store.update(SECRET, created)

    def test_update_missing(self) -> None:
        with pytest.raises(NotFoundError):
            InMemoryObjectStore().update(SECRET, secret())

    def test_list_by_namespace(self) -> None:
        store = InMemoryObjectStore()
        store.create(SECRET, secret("a", "t-abc"))
        store.create(SECRET, secret("b", "t-xyz"))

        assert [s["metadata"]["name"] for s in store.list(SECRET, "t-abc")] == ["a"]
        assert len(store.list(SECRET)) == 2


class TestStatusSubresource:
    """Status is only written through update_status."""

    def test_update_keeps_status(self) -> None:
        store = InMemoryObjectStore()
        tenant = store.create(TENANT, {"metadata": {"name": "abc"}, "status": {"robots": 1}})
        tenant["status"] = {"robots": 5}
        store.update(TENANT, tenant)
        assert store.get(TENANT, "abc")["status"] == {"robots": 1}

    def test_update_status_replaces_status_only(self) -> None:
        store = InMemoryObjectStore()
        tenant = store.create(TENANT, {"metadata": {"name": "abc", "labels": {"a": "b"}}})
        tenant["metadata"]["labels"] = {}
        tenant["status"] = {"robots": 2}
        store.update_status(TENANT, tenant)

        stored = store.get(TENANT, "abc")
        assert stored["status"] == {"robots": 2}
        assert stored["metadata"]["labels"] == {"a": "b"}


class TestDeletion:
    """Deletion honours finalizers."""

    def test_delete_without_finalizers(self) -> None:
        store = InMemoryObjectStore()
        store.create(SECRET, secret())
        store.delete(SECRET, "s", "t-abc")
        with pytest.raises(NotFoundError):
            store.get(SECRET, "s", "t-abc")

    def test_delete_with_finalizer_marks_object(self) -> None:
        store = InMemoryObjectStore()
        store.create(TENANT, {"metadata": {"name": "abc", "finalizers": ["f"]}})
        store.delete(TENANT, "abc")
        assert store.get(TENANT, "abc")["metadata"]["deletionTimestamp"]

    def test_removing_last_finalizer_deletes(self) -> None:
        store = InMemoryObjectStore()
        store.create(TENANT, {"metadata": {"name": "abc", "finalizers": ["f"]}})
        store.delete(TENANT, "abc")
        tenant = store.get(TENANT, "abc")
        tenant["metadata"]["finalizers"] = []
        store.update(TENANT, tenant)
        with pytest.raises(NotFoundError):
            store.get(TENANT, "abc")

    def test_delete_missing(self) -> None:
        with pytest.raises(NotFoundError):
            InMemoryObjectStore().delete(SECRET, "s", "t-abc")


class TestHelpers:
    """Test error injection and call recording."""

    def test_inject_error_once(self) -> None:
        store = InMemoryObjectStore()
        store.inject_error("create", SECRET, StoreError("boom", status=500))
        with pytest.raises(StoreError, match="boom"):
            store.create(SECRET, secret())
        store.create(SECRET, secret())

    def test_clear_errors(self) -> None:
        store = InMemoryObjectStore()
        store.inject_error("get", SECRET, StoreError("boom", status=500), times=3)
        store.clear_errors()
        store.create(SECRET, secret())
        assert store.get(SECRET, "s", "t-abc")["metadata"]["name"] == "s"

    def test_call_count(self) -> None:
        store = InMemoryObjectStore()
        store.create(SECRET, secret())
        store.get(SECRET, "s", "t-abc")
        store.list(NAMESPACE)

        assert store.call_count("get") == 1
        assert store.call_count("list", NAMESPACE) == 1
        assert store.call_count("list", SECRET) == 0
        assert store.calls[0] == ("create", "Secret", "t-abc", "s")

    def test_seed_is_not_recorded(self) -> None:
        store = InMemoryObjectStore()
        store.seed(SECRET, secret())
        assert store.calls == []
        assert len(store.objects(SECRET)) == 1
