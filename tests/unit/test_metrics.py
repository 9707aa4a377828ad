"""Tests for Prometheus metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from tenant_operator.metrics import (
    admission_total,
    api_call_duration_seconds,
    api_call_total,
    ensure_total,
    error_total,
    queue_depth,
    queue_retries_total,
    rate_limit_hits_total,
    reconcile_duration_seconds,
    reconcile_total,
    tenant_robots,
)
from tenant_operator.webhook import TenantValidator


class TestMetricsExist:
    """Test that all expected metrics are defined."""

    def test_counters(self):
        # Prometheus counters don't include "_total" in their _name attribute
        assert reconcile_total._name == "tenant_operator_reconcile"
        assert ensure_total._name == "tenant_operator_ensure"
        assert error_total._name == "tenant_operator_error"
        assert api_call_total._name == "tenant_operator_api_call"
        assert rate_limit_hits_total._name == "tenant_operator_rate_limit_hits"
        assert queue_retries_total._name == "tenant_operator_queue_retries"
        assert admission_total._name == "tenant_operator_admission"

    def test_histograms_and_gauges(self):
        assert reconcile_duration_seconds._name == "tenant_operator_reconcile_duration_seconds"
        assert api_call_duration_seconds._name == "tenant_operator_api_call_duration_seconds"
        assert queue_depth._name == "tenant_operator_queue_depth"
        assert tenant_robots._name == "tenant_operator_tenant_robots"


class TestMetricsRecording:
    """Test that metrics record values."""

    def test_ensure_total_increments(self):
        labels = {"ensurer": "test_ensurer", "result": "success"}
        before = REGISTRY.get_sample_value("tenant_operator_ensure_total", labels) or 0
        ensure_total.labels(**labels).inc()
        assert REGISTRY.get_sample_value("tenant_operator_ensure_total", labels) == before + 1

    def test_tenant_robots_gauge(self):
        tenant_robots.labels(tenant="metrics-test").set(4)
        assert REGISTRY.get_sample_value("tenant_operator_tenant_robots", {"tenant": "metrics-test"}) == 4

    def test_admission_recorded_by_validator(self):
        labels = {"operation": "CREATE", "result": "denied"}
        before = REGISTRY.get_sample_value("tenant_operator_admission_total", labels) or 0
        TenantValidator(False).validate({"metadata": {"name": "abc"}}, "CREATE", ["default"])
        assert REGISTRY.get_sample_value("tenant_operator_admission_total", labels) == before + 1
