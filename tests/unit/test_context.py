"""Tests for correlation ids and reconcile contexts."""

from __future__ import annotations

import pytest

from tenant_operator.utils.context import (
    ReconcileContext,
    get_context_dict,
    get_correlation_id,
    with_correlation_id,
)
from tenant_operator.utils.errors import ReconcileCancelledError


class TestCorrelationId:
    """Test correlation id scoping."""

    def test_scoped(self):
        assert get_correlation_id() is None
        with with_correlation_id("abc123") as corr_id:
            assert corr_id == "abc123"
            assert get_context_dict({"tenant": "x"}) == {"correlation_id": "abc123", "tenant": "x"}
        assert get_correlation_id() is None

    def test_generated(self):
        with with_correlation_id() as corr_id:
            assert len(corr_id) == 16
            assert get_correlation_id() == corr_id


class TestReconcileContext:
    """Test deadlines and cancellation."""

    def test_background(self):
        ctx = ReconcileContext.background()
        assert ctx.remaining() is None
        ctx.check()

    def test_deadline(self):
        now = [10.0]
        ctx = ReconcileContext(timeout=5, clock=lambda: now[0])
        assert ctx.remaining() == 5
        now[0] = 16.0
        assert ctx.remaining() == 0.0
        assert ctx.expired
        with pytest.raises(ReconcileCancelledError, match="deadline exceeded"):
            ctx.check("get tenant")

    def test_cancel(self):
        ctx = ReconcileContext()
        ctx.cancel()
        assert ctx.cancelled
        with pytest.raises(ReconcileCancelledError, match="ensure namespace: reconcile pass cancelled"):
            ctx.check("ensure namespace")
