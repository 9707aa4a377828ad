"""Tests for tracing helpers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from tenant_operator import tracing


class TestTraceSpan:
    """Test spans with and without an initialized tracer."""

    def test_without_tracer(self):
        with patch.object(tracing, "_tracer", None):
            with tracing.trace_span("reconcile_tenant") as span:
                assert span is None

    def test_with_tracer(self):
        tracer = MagicMock()
        span = tracer.start_as_current_span.return_value.__enter__.return_value
        with patch.object(tracing, "_tracer", tracer):
            with tracing.trace_span("ensure_domain", kind="Tenant", attributes={"tenant": "abc"}) as current:
                assert current is span

        tracer.start_as_current_span.assert_called_once_with(
            "ensure_domain", attributes={"tenant": "abc", "resource.kind": "Tenant"}
        )

    def test_records_exceptions(self):
        tracer = MagicMock()
        span = tracer.start_as_current_span.return_value.__enter__.return_value
        span.is_recording.return_value = True
        with patch.object(tracing, "_tracer", tracer):
            with pytest.raises(ValueError):
                with tracing.trace_span("ensure_domain"):
                    raise ValueError("boom")

        span.record_exception.assert_called_once()


class TestInitializeTracing:
    """Tracing is opt-in."""

    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("OTEL_TRACES_ENABLED", raising=False)
        with patch.object(tracing, "_tracer", None):
            tracing.initialize_tracing()
            assert tracing.get_tracer() is None
