"""Tenant reconciler: drives dependent resources toward a tenant's declared intent."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any

from . import metrics
from .config import OperatorConfig
from .constants import (
    ANNOTATION_SERVICE_ACCOUNT_NAME,
    COND_CERTIFICATE,
    COND_GATEWAY,
    FINALIZER,
    GATEWAY_CONDITIONS,
    KIND_TENANT,
    LABEL_TENANT,
    ROBOT_SERVICE_ACCOUNT,
    ROBOT_TOKEN_PREFIX,
)
from .ensurers import (
    BaseEnsurer,
    CertificateEnsurer,
    DomainEnsurer,
    GatewayEnsurer,
    NamespaceEnsurer,
    PermissionsEnsurer,
    PullSecretEnsurer,
    RobotSetupEnsurer,
    ServiceAccountEnsurer,
)
from .logging import log_resource_event
from .models import Tenant
from .store import APP_ROLLOUT, CHART_ASSIGNMENT, NAMESPACE, ROBOT, SECRET, TENANT, ObjectStore
from .tracing import add_span_attribute, trace_span
from .utils.conditions import false_conditions, remove_condition, set_condition
from .utils.context import ReconcileContext
from .utils.errors import (
    NamespaceDeletionError,
    NotFoundError,
    ReconcileCancelledError,
    ReconcileError,
    RecoverableError,
    StoreError,
    TenantOperatorError,
    sanitize_exception,
)
from .utils.events import (
    EventRecorder,
    emit_ensure_failed,
    emit_event,
    emit_finalizer_added,
    emit_reconcile_failed,
    emit_teardown_completed,
    emit_teardown_pending,
)
from .utils.naming import owns_namespace

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of a successful pass; ``requeue_after`` None means no recheck is scheduled."""

    requeue_after: float | None = None


class Reconciler:
    """Reconciles one tenant per call.

    A pass fetches the tenant, handles teardown or the finalizer, runs the
    ensurers and persists the status once. Ensurer failures do not stop the
    pass; the last one is raised after the status was written.
    """

    def __init__(
        self,
        store: ObjectStore,
        config: OperatorConfig,
        rng: random.Random | None = None,
        event_recorder: EventRecorder = emit_event,
    ):
        self.store = store
        self.config = config
        self.event_recorder = event_recorder
        rng = rng or config.make_random()

        self.namespace_ensurer = NamespaceEnsurer(store, config, event_recorder)
        self.service_account_ensurer = ServiceAccountEnsurer(store, config, event_recorder)
        self.permissions_ensurer = PermissionsEnsurer(store, config, event_recorder)
        self.pull_secret_ensurer = PullSecretEnsurer(store, config, event_recorder)
        self.domain_ensurer = DomainEnsurer(store, config, event_recorder, rng=rng)
        self.certificate_ensurer = CertificateEnsurer(store, config, event_recorder)
        self.gateway_ensurer = GatewayEnsurer(store, config, event_recorder)
        self.robot_setup_ensurer = RobotSetupEnsurer(store, config, event_recorder)

    def _log(self, name: str, message: str, reason: str, level: int = logging.INFO, **kwargs: Any) -> None:
        log_resource_event(
            logger,
            resource_kind=KIND_TENANT,
            resource_name=name,
            event="reconcile",
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def reconcile(self, name: str, ctx: ReconcileContext | None = None) -> ReconcileResult:
        """Run one reconcile pass for the tenant ``name``.

        Raises:
            ReconcileError: If the pass failed and should be retried with backoff
        """
        ctx = ctx or ReconcileContext.background()
        metrics.reconcile_total.labels(kind=KIND_TENANT, result="started").inc()
        start_time = time.time()
        try:
            with trace_span("reconcile_tenant", attributes={"tenant": name}):
                result = self._reconcile(name, ctx)
                add_span_attribute("requeue_after", result.requeue_after or 0)
        except ReconcileError as e:
            self._record_failure(name, e.cause)
            raise
        except TenantOperatorError as e:
            self._record_failure(name, e)
            raise ReconcileError("reconcile", name, e) from e
        finally:
            metrics.reconcile_duration_seconds.labels(kind=KIND_TENANT).observe(time.time() - start_time)
        metrics.reconcile_total.labels(kind=KIND_TENANT, result="success").inc()
        return result

    def _record_failure(self, name: str, cause: BaseException) -> None:
        metrics.reconcile_total.labels(kind=KIND_TENANT, result="error").inc()
        metrics.error_total.labels(kind=KIND_TENANT, error_type=type(cause).__name__).inc()

    def _reconcile(self, name: str, ctx: ReconcileContext) -> ReconcileResult:
        ctx.check("get tenant")
        try:
            body = self.store.get(TENANT, name, timeout=ctx.remaining())
        except NotFoundError:
            self._log(name, "Tenant not found, nothing to do", reason="NotFound", level=logging.DEBUG)
            metrics.forget_tenant(name)
            return ReconcileResult()
        except StoreError as e:
            raise ReconcileError("get tenant", name, e) from e
        tenant = Tenant.from_body(body)

        if tenant.is_deleting:
            return self._teardown(tenant, ctx)

        if FINALIZER not in tenant.finalizers:
            self._add_finalizer(tenant, ctx)

        ctx.check("ensure namespace")
        try:
            self.namespace_ensurer.ensure(tenant, ctx)
        except NamespaceDeletionError as e:
            self._log(name, f"Namespace in deletion: {e}", reason="NamespaceInDeletion")
            self._persist_status(tenant, ctx)
            return ReconcileResult(requeue_after=self.config.requeue_fast)
        except ReconcileCancelledError:
            raise
        except TenantOperatorError as e:
            self._persist_status(tenant, ctx)
            raise ReconcileError("ensure namespace", name, e) from e

        for operation, collect in (
            ("collect namespaces", self._collect_namespaces),
            ("collect robots", self._collect_robots),
        ):
            ctx.check(operation)
            try:
                collect(tenant, ctx)
            except StoreError as e:
                self._persist_status(tenant, ctx)
                raise ReconcileError(operation, name, e) from e

        outcome = _PassOutcome()
        self._run(self.service_account_ensurer, tenant, ctx, outcome)
        self._run(self.permissions_ensurer, tenant, ctx, outcome)
        self._run(self.pull_secret_ensurer, tenant, ctx, outcome)

        if self.config.tenant_specific_gateways:
            self._ensure_gateway_chain(tenant, ctx, outcome)
        else:
            tenant.status.tenant_domain = ""
            tenant.status.gateway = self.config.default_gateway
            for condition_type in GATEWAY_CONDITIONS:
                remove_condition(tenant.status.conditions, condition_type)

        self._run(self.robot_setup_ensurer, tenant, ctx, outcome)

        status_error = self._persist_status(tenant, ctx)
        if outcome.last_error is not None:
            message = f"{outcome.last_operation} failed: {sanitize_exception(outcome.last_error)}"
            emit_reconcile_failed(tenant.to_body(), message, recorder=self.event_recorder)
            raise ReconcileError(outcome.last_operation, name, outcome.last_error) from outcome.last_error
        if status_error is not None:
            raise ReconcileError("update tenant status", name, status_error) from status_error

        metrics.tenant_robots.labels(tenant=name).set(tenant.status.robots)
        pending = false_conditions(tenant.status.conditions)
        if outcome.recoverable or pending:
            self._log(name, "Tenant not converged yet", reason="Pending", pending=pending)
            return ReconcileResult(requeue_after=self.config.requeue_fast)
        return ReconcileResult(requeue_after=self.config.requeue_slow)

    def _ensure_gateway_chain(self, tenant: Tenant, ctx: ReconcileContext, outcome: _PassOutcome) -> None:
        """DNS entry, then certificate, then gateway; each step needs the previous one."""
        dns_ok = self._run(self.domain_ensurer, tenant, ctx, outcome)
        cert_ok = False
        if dns_ok:
            cert_ok = self._run(self.certificate_ensurer, tenant, ctx, outcome)
        else:
            set_condition(tenant.status.conditions, COND_CERTIFICATE, False, "No DNS record for the tenant created")
        if dns_ok and cert_ok:
            self._run(self.gateway_ensurer, tenant, ctx, outcome)
        else:
            set_condition(
                tenant.status.conditions,
                COND_GATEWAY,
                False,
                "No DNS record and/or TLS certificate for the tenant created",
            )

    def _run(self, ensurer: BaseEnsurer, tenant: Tenant, ctx: ReconcileContext, outcome: _PassOutcome) -> bool:
        """Run one ensurer; failures are remembered, never raised. Returns True on success."""
        ctx.check(f"ensure {ensurer.name}")
        try:
            ensurer.ensure(tenant, ctx)
        except RecoverableError as e:
            outcome.recoverable = True
            self._log(
                tenant.name,
                f"Ensure {ensurer.name} pending, this is expected to occur rarely: {e}",
                reason="EnsurePending",
            )
            return False
        except ReconcileCancelledError:
            raise
        except TenantOperatorError as e:
            outcome.last_error = e
            outcome.last_operation = f"ensure {ensurer.name}"
            message = sanitize_exception(e)
            self._log(
                tenant.name,
                f"Ensure {ensurer.name} failed: {message}",
                reason="EnsureFailed",
                level=logging.WARNING,
                error_type=type(e).__name__,
            )
            emit_ensure_failed(tenant.to_body(), message, recorder=self.event_recorder)
            return False
        return True

    def _add_finalizer(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        tenant.finalizers.append(FINALIZER)
        ctx.check("add finalizer")
        try:
            stored = self.store.update(TENANT, tenant.to_body(), timeout=ctx.remaining())
        except StoreError as e:
            raise ReconcileError("add finalizer to tenant", tenant.name, e) from e
        tenant.resource_version = stored["metadata"]["resourceVersion"]
        self._log(tenant.name, "Added finalizer", reason="FinalizerAdded")
        emit_finalizer_added(tenant.to_body(), recorder=self.event_recorder)

    def _teardown(self, tenant: Tenant, ctx: ReconcileContext) -> ReconcileResult:
        """Remove app rollouts, wait for chart assignments to drain, then release the finalizer."""
        namespace = tenant.main_namespace
        ctx.check("list app rollouts")
        try:
            rollouts = self.store.list(APP_ROLLOUT, namespace, timeout=ctx.remaining())
        except StoreError as e:
            raise ReconcileError("list app rollouts", tenant.name, e) from e

        if rollouts:
            for rollout in rollouts:
                meta = rollout["metadata"]
                if meta.get("deletionTimestamp"):
                    continue
                ctx.check("delete app rollout")
                try:
                    self.store.delete(APP_ROLLOUT, meta["name"], namespace, timeout=ctx.remaining())
                except NotFoundError:
                    continue
                except StoreError as e:
                    raise ReconcileError(f"delete app rollout {meta['name']}", tenant.name, e) from e
            message = f"Waiting for {len(rollouts)} app rollouts in {namespace} to be deleted"
            self._log(tenant.name, message, reason="TeardownPending")
            emit_teardown_pending(tenant.to_body(), message, recorder=self.event_recorder)
            return ReconcileResult(requeue_after=self.config.requeue_fast)

        ctx.check("list chart assignments")
        try:
            assignments = self.store.list(CHART_ASSIGNMENT, namespace, timeout=ctx.remaining())
        except StoreError as e:
            raise ReconcileError("list chart assignments", tenant.name, e) from e
        if assignments:
            self._log(
                tenant.name,
                f"Waiting for {len(assignments)} chart assignments in {namespace} to be deleted",
                reason="TeardownPending",
            )
            return ReconcileResult(requeue_after=self.config.requeue_fast)

        if FINALIZER in tenant.finalizers:
            tenant.finalizers.remove(FINALIZER)
            ctx.check("remove finalizer")
            try:
                self.store.update(TENANT, tenant.to_body(), timeout=ctx.remaining())
            except NotFoundError:
                metrics.forget_tenant(tenant.name)
                return ReconcileResult()
            except StoreError as e:
                raise ReconcileError("remove finalizer from tenant", tenant.name, e) from e
            self._log(tenant.name, "Removed finalizer", reason="FinalizerRemoved")
            emit_teardown_completed(tenant.to_body(), recorder=self.event_recorder)
        metrics.forget_tenant(tenant.name)
        self._log(tenant.name, "Tenant deleted", reason="Deleted")
        return ReconcileResult()

    def _collect_namespaces(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        """Record the tenant's namespaces in status and label the ones missing the tenant label."""
        owned = []
        for namespace in self.store.list(NAMESPACE, timeout=ctx.remaining()):
            meta = namespace["metadata"]
            if not owns_namespace(tenant.name, meta["name"]):
                continue
            owned.append(meta["name"])
            labels = meta.get("labels") or {}
            if labels.get(LABEL_TENANT) != tenant.name:
                labels[LABEL_TENANT] = tenant.name
                meta["labels"] = labels
                ctx.check("label namespace")
                self.store.update(NAMESPACE, namespace, timeout=ctx.remaining())
        tenant.status.tenant_namespaces = owned

    def _collect_robots(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        """Count robots and robot clusters, the latter by their service account token secrets."""
        robots = self.store.list(ROBOT, tenant.main_namespace, timeout=ctx.remaining())
        tenant.status.robots = len(robots)

        ctx.check("list robot service account tokens")
        secrets = self.store.list(SECRET, tenant.robot_config_namespace, timeout=ctx.remaining())
        tenant.status.robot_clusters = sum(
            1
            for secret in secrets
            if secret["metadata"]["name"].startswith(ROBOT_TOKEN_PREFIX)
            and (secret["metadata"].get("annotations") or {}).get(ANNOTATION_SERVICE_ACCOUNT_NAME)
            == ROBOT_SERVICE_ACCOUNT
        )

    def _persist_status(self, tenant: Tenant, ctx: ReconcileContext) -> Exception | None:
        """Write the status; a failure is logged and returned, not raised."""
        try:
            stored = self.store.update_status(TENANT, tenant.to_body(), timeout=ctx.remaining())
        except StoreError as e:
            self._log(
                tenant.name,
                f"Update of tenant status failed: {sanitize_exception(e)}",
                reason="StatusUpdateFailed",
                level=logging.WARNING,
            )
            return e
        tenant.resource_version = stored["metadata"]["resourceVersion"]
        return None


@dataclass
class _PassOutcome:
    last_error: Exception | None = None
    last_operation: str = ""
    recoverable: bool = False
