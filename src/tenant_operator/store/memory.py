"""In-memory object store for tests and local experiments.

Mimics the API server semantics the reconciler depends on: resource versions
with optimistic concurrency, status as a separate subresource and
finalizer-aware deletion.
"""

from __future__ import annotations

import copy
import itertools
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from ..utils.errors import ConflictError, NotFoundError, StoreError
from .base import NAMESPACE, ResourceKind

_Key = tuple[ResourceKind, str, str]


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class InMemoryObjectStore:
    """ObjectStore implementation holding deep copies of objects in a dict.

    Example:
        >>> store = InMemoryObjectStore()
        >>> store.create(NAMESPACE, {"metadata": {"name": "t-abc"}})
        >>> store.inject_error("create", SECRET, StoreError("boom"))
    """

    def __init__(self) -> None:
        self._objects: dict[_Key, dict[str, Any]] = {}
        self._versions = itertools.count(1)
        self._errors: dict[tuple[str, ResourceKind], list[Exception]] = {}
        self._lock = threading.RLock()
        self.calls: list[tuple[str, str, str | None, str]] = []

    # Test helpers

    def inject_error(self, verb: str, kind: ResourceKind, error: Exception, times: int = 1) -> None:
        """Make the next ``times`` calls of ``verb`` on ``kind`` raise ``error``."""
        with self._lock:
            self._errors.setdefault((verb, kind), []).extend([error] * times)

    def clear_errors(self) -> None:
        with self._lock:
            self._errors.clear()

    def call_count(self, verb: str, kind: ResourceKind | None = None) -> int:
        """Number of recorded calls of ``verb``, optionally restricted to one kind."""
        return sum(
            1 for call_verb, call_kind, _, _ in self.calls
            if call_verb == verb and (kind is None or call_kind == kind.kind)
        )

    def seed(self, kind: ResourceKind, body: dict[str, Any]) -> dict[str, Any]:
        """Store an object as is, bypassing error injection and call recording."""
        with self._lock:
            obj = copy.deepcopy(body)
            self._stamp_new(kind, obj)
            self._objects[self._key(kind, obj)] = obj
            return copy.deepcopy(obj)

    def objects(self, kind: ResourceKind) -> list[dict[str, Any]]:
        """Snapshot of all stored objects of a kind."""
        with self._lock:
            return [copy.deepcopy(obj) for key, obj in self._objects.items() if key[0] == kind]

    # Internals

    def _record(self, verb: str, kind: ResourceKind, name: str, namespace: str | None) -> None:
        self.calls.append((verb, kind.kind, namespace, name))
        pending = self._errors.get((verb, kind))
        if pending:
            raise pending.pop(0)

    @staticmethod
    def _key(kind: ResourceKind, obj: dict[str, Any]) -> _Key:
        meta = obj.get("metadata") or {}
        namespace = meta.get("namespace", "") if kind.namespaced else ""
        return (kind, namespace or "", meta["name"])

    def _stamp_new(self, kind: ResourceKind, obj: dict[str, Any]) -> None:
        obj.setdefault("apiVersion", kind.api_version)
        obj.setdefault("kind", kind.kind)
        meta = obj.setdefault("metadata", {})
        meta.setdefault("uid", str(uuid.uuid4()))
        meta.setdefault("creationTimestamp", _now())
        meta["resourceVersion"] = str(next(self._versions))

    def _lookup(self, kind: ResourceKind, name: str, namespace: str | None) -> dict[str, Any]:
        key = (kind, (namespace or "") if kind.namespaced else "", name)
        obj = self._objects.get(key)
        if obj is None:
            raise NotFoundError(f"{kind} {namespace + '/' if namespace else ''}{name} not found")
        return obj

    def _check_version(self, kind: ResourceKind, current: dict[str, Any], body: dict[str, Any]) -> None:
        expected = (body.get("metadata") or {}).get("resourceVersion")
        if expected and expected != current["metadata"]["resourceVersion"]:
            raise ConflictError(
                f"{kind} {current['metadata']['name']}: the object has been modified; "
                "please apply your changes to the latest version and try again"
            )

    # ObjectStore

    def get(
        self, kind: ResourceKind, name: str, namespace: str | None = None, timeout: float | None = None
    ) -> dict[str, Any]:
        with self._lock:
            self._record("get", kind, name, namespace)
            return copy.deepcopy(self._lookup(kind, name, namespace))

    def list(
        self, kind: ResourceKind, namespace: str | None = None, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        with self._lock:
            self._record("list", kind, "", namespace)
            return [
                copy.deepcopy(obj)
                for (obj_kind, obj_namespace, _), obj in sorted(self._objects.items(), key=lambda i: i[0][1:])
                if obj_kind == kind and (namespace is None or obj_namespace == namespace)
            ]

    def create(self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        with self._lock:
            meta = body.get("metadata") or {}
            self._record("create", kind, meta.get("name", ""), meta.get("namespace"))
            if kind.namespaced and not meta.get("namespace"):
                raise StoreError(f"{kind} {meta.get('name')}: namespace is required", status=400)
            key = self._key(kind, body)
            if key in self._objects:
                raise ConflictError(f"{kind} {meta['name']} already exists")
            if kind.namespaced:
                ns = self._objects.get((NAMESPACE, "", meta["namespace"]))
                if ns is not None and (ns.get("metadata") or {}).get("deletionTimestamp"):
                    raise StoreError(
                        f"{kind} {meta['name']}: namespace {meta['namespace']} is being terminated",
                        status=403,
                    )
            obj = copy.deepcopy(body)
            obj["metadata"].pop("resourceVersion", None)
            self._stamp_new(kind, obj)
            self._objects[key] = obj
            return copy.deepcopy(obj)

    def update(self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        with self._lock:
            meta = body.get("metadata") or {}
            self._record("update", kind, meta.get("name", ""), meta.get("namespace"))
            current = self._lookup(kind, meta["name"], meta.get("namespace"))
            self._check_version(kind, current, body)

            obj = copy.deepcopy(body)
            if "status" in current:
                obj["status"] = copy.deepcopy(current["status"])
            else:
                obj.pop("status", None)
            new_meta = obj["metadata"]
            for field in ("uid", "creationTimestamp", "deletionTimestamp"):
                if field in current["metadata"]:
                    new_meta[field] = current["metadata"][field]
                else:
                    new_meta.pop(field, None)
            new_meta["resourceVersion"] = str(next(self._versions))

            key = self._key(kind, obj)
            if new_meta.get("deletionTimestamp") and not new_meta.get("finalizers"):
                del self._objects[key]
            else:
                self._objects[key] = obj
            return copy.deepcopy(obj)

    def update_status(
        self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        with self._lock:
            meta = body.get("metadata") or {}
            self._record("update_status", kind, meta.get("name", ""), meta.get("namespace"))
            current = self._lookup(kind, meta["name"], meta.get("namespace"))
            self._check_version(kind, current, body)
            current["status"] = copy.deepcopy(body.get("status") or {})
            current["metadata"]["resourceVersion"] = str(next(self._versions))
            return copy.deepcopy(current)

    def delete(
        self, kind: ResourceKind, name: str, namespace: str | None = None, timeout: float | None = None
    ) -> None:
        with self._lock:
            self._record("delete", kind, name, namespace)
            current = self._lookup(kind, name, namespace)
            meta = current["metadata"]
            if meta.get("finalizers"):
                if not meta.get("deletionTimestamp"):
                    meta["deletionTimestamp"] = _now()
                    meta["resourceVersion"] = str(next(self._versions))
                return
            del self._objects[self._key(kind, current)]
