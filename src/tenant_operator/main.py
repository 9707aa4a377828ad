"""Main entry point for the Tenant Operator.

kopf supplies the watch streams, the admission webhook server and the
operator lifecycle. Watch events are only routed to tenant keys here; the
reconcile passes themselves run on the controller's worker threads.
"""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .constants import API_GROUP, KIND_TENANT
from .controller import TenantController
from .dispatcher import needs_tenant_names, route
from .reconciler import Reconciler
from .store import (
    CERTIFICATE,
    CONFIG_MAP,
    DNS_ENTRY,
    GATEWAY,
    NAMESPACE,
    ROBOT,
    ROLE_BINDING,
    SECRET,
    SERVICE_ACCOUNT,
    TENANT,
    KubernetesObjectStore,
    ResourceKind,
)
from .tracing import initialize_tracing
from .utils.errors import StoreError, sanitize_exception
from .utils.rate_limit import RateLimiter
from .webhook import TenantValidator

logger = logging.getLogger(__name__)

# Kinds whose changes can move a tenant away from its desired state
WATCHED_KINDS = (
    TENANT,
    NAMESPACE,
    SERVICE_ACCOUNT,
    ROLE_BINDING,
    SECRET,
    CONFIG_MAP,
    DNS_ENTRY,
    CERTIFICATE,
    GATEWAY,
    ROBOT,
)


class _Operator:
    """Components created at startup and shared by the kopf handlers."""

    config: OperatorConfig | None = None
    store: KubernetesObjectStore | None = None
    controller: TenantController | None = None
    validator: TenantValidator | None = None
    metrics_server: Any = None


operator = _Operator()


def tenant_names() -> list[str]:
    return [tenant["metadata"]["name"] for tenant in operator.store.list(TENANT)]


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure kopf and start the reconcile workers."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    config = OperatorConfig.from_env()

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0

    settings.admission.server = kopf.WebhookServer(
        addr="0.0.0.0",
        port=config.webhook_port,
        host=config.webhook_host,
        certfile=config.webhook_certfile,
        pkeyfile=config.webhook_keyfile,
    )
    if config.webhook_managed:
        settings.admission.managed = f"tenant-webhook.{API_GROUP}"

    store = KubernetesObjectStore(rate_limiter=RateLimiter(config.k8s_rate_limit))
    reconciler = Reconciler(store, config)
    controller = TenantController(reconciler, config)
    controller.start()

    operator.config = config
    operator.store = store
    operator.controller = controller
    operator.validator = TenantValidator(config.tenant_specific_gateways)
    operator.metrics_server = health.start_metrics_server(config.metrics_port, ready_check=lambda: controller.ready)
    logger.info(f"Tenant operator started for domain {config.domain}")


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Stop the workers and the metrics server."""
    if operator.controller is not None:
        operator.controller.stop(timeout=operator.config.reconcile_timeout)
    if operator.metrics_server is not None:
        operator.metrics_server.shutdown()
    logger.info("Tenant operator stopped")


def handle_event(kind: ResourceKind, type: str | None, body: kopf.Body) -> set[str]:
    """Enqueue the tenants affected by a watch event; returns their names."""
    if operator.controller is None:
        return set()
    body = dict(body)
    names: list[str] = []
    if needs_tenant_names(kind.kind, type, body):
        try:
            names = tenant_names()
        except StoreError as e:
            logger.warning(f"Listing tenants to route {kind} event failed: {sanitize_exception(e)}")
            return set()
    tenants = route(kind.kind, type, body, names)
    if tenants:
        logger.debug(f"{kind} event {type} on {body.get('metadata', {}).get('name')} enqueues {sorted(tenants)}")
        operator.controller.enqueue(tenants)
    return tenants


def _register_watch(kind: ResourceKind) -> None:
    @kopf.on.event(kind.api_version, kind.plural, id=f"watch-{kind.plural}")
    def watch(type: str | None, body: kopf.Body, **_: Any) -> None:
        handle_event(kind, type, body)


for _kind in WATCHED_KINDS:
    _register_watch(_kind)


@kopf.on.validate(API_GROUP, TENANT.version, TENANT.plural, id="validate-tenant")
def validate_tenant(body: kopf.Body, operation: str, **_: Any) -> None:
    """Reject tenant writes that break the default tenant rules."""
    try:
        existing = tenant_names()
    except StoreError as e:
        raise kopf.AdmissionError(f"Listing tenants failed: {sanitize_exception(e)}", code=500)

    result = operator.validator.validate(dict(body), operation, existing)
    if not result.allowed:
        logger.info(f"Denied {operation} of {KIND_TENANT} {body.get('metadata', {}).get('name')}: {result.reason}")
        raise kopf.AdmissionError(result.reason, code=400)
