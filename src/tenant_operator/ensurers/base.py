"""Base ensurer class with common functionality for all dependent resources."""

from __future__ import annotations

import copy
import logging
from typing import Any

from .. import metrics
from ..config import OperatorConfig
from ..constants import KIND_TENANT
from ..logging import log_resource_event
from ..models import Tenant
from ..store import ObjectStore, ResourceKind
from ..tracing import trace_span
from ..utils.conditions import set_condition
from ..utils.context import ReconcileContext
from ..utils.errors import (
    EnsureError,
    NotFoundError,
    OwnershipError,
    RecoverableError,
    StoreError,
)
from ..utils.events import EventRecorder, emit_event, emit_resource_created

# Failures of a create or update call
WRITE_ERRORS = (StoreError, OwnershipError)


class BaseEnsurer:
    """Base class for all ensurers.

    An ensurer drives one category of dependent objects toward the state
    implied by a tenant and records the outcome as one status condition.
    ``ensure`` raises after setting the condition False; recoverable states
    raise a ``RecoverableError`` instead of an ``EnsureError``.
    """

    name = "base"
    condition = ""

    def __init__(
        self,
        store: ObjectStore,
        config: OperatorConfig,
        event_recorder: EventRecorder = emit_event,
    ):
        self.store = store
        self.config = config
        self.event_recorder = event_recorder
        self.logger = logging.getLogger(__name__)

    def ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        """Run the ensurer with tracing and metrics."""
        with trace_span(f"ensure_{self.name}", attributes={"tenant": tenant.name}):
            try:
                self._ensure(tenant, ctx)
            except RecoverableError:
                metrics.ensure_total.labels(ensurer=self.name, result="pending").inc()
                raise
            except Exception as e:
                metrics.ensure_total.labels(ensurer=self.name, result="failed").inc()
                metrics.error_total.labels(kind=self.condition, error_type=type(e).__name__).inc()
                raise
        metrics.ensure_total.labels(ensurer=self.name, result="success").inc()

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        raise NotImplementedError

    # Logging

    def log_info(self, tenant: Tenant, message: str, reason: str = "Info", **kwargs: Any) -> None:
        log_resource_event(
            self.logger,
            resource_kind=KIND_TENANT,
            resource_name=tenant.name,
            event=self.name,
            reason=reason,
            message=message,
            **kwargs,
        )

    # Conditions

    def succeed(self, tenant: Tenant, message: str) -> None:
        set_condition(tenant.status.conditions, self.condition, True, message)

    def fail(self, tenant: Tenant, operation: str, message: str) -> EnsureError:
        """Set the condition False and return the error to raise."""
        set_condition(tenant.status.conditions, self.condition, False, message)
        return EnsureError(operation, tenant.name, message)

    # Store helpers

    def get_or_none(
        self, kind: ResourceKind, name: str, namespace: str | None, ctx: ReconcileContext
    ) -> dict[str, Any] | None:
        """Read an object, None if it does not exist. Other errors propagate."""
        ctx.check(f"get {kind}")
        try:
            return self.store.get(kind, name, namespace, timeout=ctx.remaining())
        except NotFoundError:
            return None

    def apply(
        self,
        tenant: Tenant,
        kind: ResourceKind,
        existing: dict[str, Any] | None,
        desired: dict[str, Any],
        ctx: ReconcileContext,
        owned: bool = True,
    ) -> dict[str, Any]:
        """Create ``desired`` or update ``existing`` to it; unchanged objects are not written.

        Raises:
            OwnershipError: If the object is controlled by another owner
            StoreError: If the write fails
        """
        if owned:
            set_controller_reference(tenant, desired)
        ctx.check(f"write {kind}")
        meta = desired.get("metadata", {})
        if existing is None:
            created = self.store.create(kind, desired, timeout=ctx.remaining())
            ref = f"{meta['namespace']}/{meta['name']}" if meta.get("namespace") else meta["name"]
            self.log_info(tenant, f"Created {kind} {ref}", reason="Created")
            emit_resource_created(tenant.to_body(), f"{kind} {ref}", recorder=self.event_recorder)
            return created
        if desired == existing:
            return existing
        return self.store.update(kind, desired, timeout=ctx.remaining())


def new_object(kind: ResourceKind, name: str, namespace: str | None = None) -> dict[str, Any]:
    """Skeleton body of an object that does not exist yet."""
    meta: dict[str, Any] = {"name": name}
    if namespace is not None:
        meta["namespace"] = namespace
    return {"apiVersion": kind.api_version, "kind": kind.kind, "metadata": meta}


def desired_from(existing: dict[str, Any] | None, kind: ResourceKind, name: str, namespace: str | None) -> dict[str, Any]:
    """Copy of ``existing`` to merge desired fields onto, or a fresh skeleton."""
    if existing is None:
        return new_object(kind, name, namespace)
    return copy.deepcopy(existing)


def set_controller_reference(tenant: Tenant, body: dict[str, Any]) -> None:
    """Make the tenant the controller owner of ``body``.

    Raises:
        OwnershipError: If another object already controls ``body``
    """
    meta = body.setdefault("metadata", {})
    refs = meta.setdefault("ownerReferences", [])
    owner = tenant.owner_reference()
    for ref in refs:
        if ref.get("controller") and ref.get("uid") != tenant.uid:
            raise OwnershipError(
                f"{body.get('kind', 'object')} {meta.get('name')} is already controlled by "
                f"{ref.get('kind')} {ref.get('name')}"
            )
    for i, ref in enumerate(refs):
        if ref.get("uid") == tenant.uid:
            refs[i] = owner
            return
    refs.append(owner)
