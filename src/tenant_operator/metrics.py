"""Prometheus metrics for the Tenant Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "tenant_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "tenant_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Ensurer metrics
ensure_total = Counter(
    "tenant_operator_ensure_total",
    "Total number of ensure steps per dependent resource category",
    ["ensurer", "result"],
)

# Error metrics
error_total = Counter(
    "tenant_operator_error_total",
    "Total number of errors by type",
    ["kind", "error_type"],
)

# API call metrics
api_call_total = Counter(
    "tenant_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "tenant_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "tenant_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)

# Work queue metrics
queue_depth = Gauge(
    "tenant_operator_queue_depth",
    "Number of tenant keys waiting to be reconciled",
)

queue_retries_total = Counter(
    "tenant_operator_queue_retries_total",
    "Total number of rate limited requeues",
)

# Admission metrics
admission_total = Counter(
    "tenant_operator_admission_total",
    "Total number of admission decisions",
    ["operation", "result"],
)

# Tenant inventory
tenant_robots = Gauge(
    "tenant_operator_tenant_robots",
    "Number of robots per tenant",
    ["tenant"],
)


def forget_tenant(name: str) -> None:
    """Drop the per-tenant series of a deleted tenant."""
    try:
        tenant_robots.remove(name)
    except KeyError:
        # Never reported, the tenant was deleted before its first full pass
        pass
