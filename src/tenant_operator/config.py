"""Runtime configuration for the Tenant Operator."""

from __future__ import annotations

import os
import random
from dataclasses import dataclass
from typing import Mapping

from .constants import TENANT_SUBDOMAIN_INFIX


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be a number, got {raw!r}") from e


def _get_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class OperatorConfig:
    """Settings shared by the reconciler, controller and webhook.

    Attributes:
        domain: Root domain of the cluster, tenant domains live under ``.t.<domain>``
        default_gateway: Gateway reported for tenants when tenant specific gateways are off
        tenant_specific_gateways: Create DNS entry, certificate and gateway per tenant
        requeue_fast: Recheck interval while a tenant has not converged (seconds)
        requeue_slow: Recheck interval after a tenant converged (seconds)
        retry_min_delay: First backoff delay after a failed reconcile (seconds)
        retry_max_delay: Backoff ceiling (seconds)
        retry_jitter: Relative jitter applied to backoff delays
        reconcile_timeout: Deadline for a single reconcile pass (seconds)
        workers: Number of concurrent reconcile workers
        k8s_rate_limit: Maximum Kubernetes API calls per second
        random_seed: Seed for the random source used for generated domains
    """

    domain: str
    default_gateway: str = ""
    tenant_specific_gateways: bool = False
    webhook_port: int = 9876
    webhook_host: str | None = None
    webhook_cert_dir: str = "/tls"
    webhook_managed: bool = False
    metrics_port: int = 8080
    workers: int = 4
    requeue_fast: float = 3.0
    requeue_slow: float = 180.0
    retry_min_delay: float = 1.0
    retry_max_delay: float = 60.0
    retry_jitter: float = 0.1
    reconcile_timeout: float = 60.0
    k8s_rate_limit: float = 10.0
    random_seed: int | None = None

    def __post_init__(self) -> None:
        if not self.domain:
            raise ValueError("domain must not be empty")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.requeue_fast <= 0 or self.requeue_slow <= 0:
            raise ValueError("requeue intervals must be positive")
        if self.retry_min_delay <= 0 or self.retry_max_delay < self.retry_min_delay:
            raise ValueError("retry delays must satisfy 0 < min <= max")
        if not 0 <= self.retry_jitter < 1:
            raise ValueError("retry jitter must be in [0, 1)")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OperatorConfig:
        """Build the configuration from environment variables.

        Raises:
            ValueError: If a variable is missing or malformed
        """
        env = os.environ if environ is None else environ
        seed = env.get("RANDOM_SEED")
        return cls(
            domain=env.get("CLUSTER_DOMAIN", ""),
            default_gateway=env.get("DEFAULT_GATEWAY", ""),
            tenant_specific_gateways=_parse_bool(env.get("TENANT_SPECIFIC_GATEWAYS", "false")),
            webhook_port=_get_int(env, "WEBHOOK_PORT", 9876),
            webhook_host=env.get("WEBHOOK_HOST") or None,
            webhook_cert_dir=env.get("WEBHOOK_CERT_DIR", "/tls"),
            webhook_managed=_parse_bool(env.get("WEBHOOK_MANAGED", "false")),
            metrics_port=_get_int(env, "METRICS_PORT", 8080),
            workers=_get_int(env, "RECONCILE_WORKERS", 4),
            requeue_fast=_get_float(env, "REQUEUE_FAST_SECONDS", 3.0),
            requeue_slow=_get_float(env, "REQUEUE_SLOW_SECONDS", 180.0),
            retry_min_delay=_get_float(env, "RETRY_MIN_DELAY_SECONDS", 1.0),
            retry_max_delay=_get_float(env, "RETRY_MAX_DELAY_SECONDS", 60.0),
            retry_jitter=_get_float(env, "RETRY_JITTER", 0.1),
            reconcile_timeout=_get_float(env, "RECONCILE_TIMEOUT_SECONDS", 60.0),
            k8s_rate_limit=_get_float(env, "K8S_RATE_LIMIT_PER_SECOND", 10.0),
            random_seed=int(seed) if seed else None,
        )

    @property
    def tenant_subdomain(self) -> str:
        """Suffix shared by all tenant domains, e.g. ``.t.example.com``."""
        return f"{TENANT_SUBDOMAIN_INFIX}{self.domain}"

    @property
    def webhook_certfile(self) -> str | None:
        path = os.path.join(self.webhook_cert_dir, "tls.crt")
        return path if os.path.exists(path) else None

    @property
    def webhook_keyfile(self) -> str | None:
        path = os.path.join(self.webhook_cert_dir, "tls.key")
        return path if os.path.exists(path) else None

    def make_random(self) -> random.Random:
        """Random source for generated tenant domains."""
        return random.Random(self.random_seed)
