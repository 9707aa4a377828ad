"""Worker pool draining the tenant work queue into the reconciler."""

from __future__ import annotations

import contextvars
import logging
import threading
from typing import Iterable

from .config import OperatorConfig
from .constants import KIND_TENANT
from .logging import log_resource_event
from .reconciler import Reconciler
from .utils.context import ReconcileContext, with_correlation_id
from .utils.errors import ReconcileError, sanitize_exception
from .workqueue import WorkQueue

logger = logging.getLogger(__name__)


class TenantController:
    """Runs reconcile passes on a fixed number of worker threads.

    Keys are handed out by the work queue, so one tenant is never reconciled
    by two workers at once while different tenants proceed in parallel.
    Successful passes are scheduled again after the interval the reconciler
    asked for, failed ones with exponential backoff.
    """

    def __init__(self, reconciler: Reconciler, config: OperatorConfig, queue: WorkQueue | None = None):
        self.reconciler = reconciler
        self.config = config
        self.queue = queue or WorkQueue(
            min_delay=config.retry_min_delay,
            max_delay=config.retry_max_delay,
            jitter=config.retry_jitter,
        )
        self._threads: list[threading.Thread] = []
        self._active: dict[str, ReconcileContext] = {}
        self._lock = threading.Lock()
        self._started = False

    def enqueue(self, names: Iterable[str]) -> None:
        for name in names:
            self.queue.add(name)

    def start(self) -> None:
        """Start the workers in copies of the caller's context (kopf posts events from it)."""
        if self._started:
            return
        for i in range(self.config.workers):
            ctx = contextvars.copy_context()
            thread = threading.Thread(
                target=ctx.run, args=(self._worker,), name=f"tenant-worker-{i}", daemon=True
            )
            thread.start()
            self._threads.append(thread)
        self._started = True
        logger.info(f"Started {self.config.workers} tenant reconcile workers")

    @property
    def ready(self) -> bool:
        return self._started and not self.queue.shutting_down

    def stop(self, timeout: float | None = None) -> None:
        """Shut down the queue, cancel in-flight passes and wait for the workers."""
        self.queue.shut_down()
        with self._lock:
            for ctx in self._active.values():
                ctx.cancel()
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()
        self._started = False
        logger.info("Stopped tenant reconcile workers")

    def _worker(self) -> None:
        while True:
            key = self.queue.get()
            if key is None:
                return
            self.process(key)

    def process(self, key: str) -> None:
        """Reconcile one key and schedule its next pass."""
        ctx = ReconcileContext(timeout=self.config.reconcile_timeout)
        with self._lock:
            self._active[key] = ctx
        try:
            with with_correlation_id():
                self._process(key, ctx)
        finally:
            with self._lock:
                self._active.pop(key, None)
            self.queue.done(key)

    def _process(self, key: str, ctx: ReconcileContext) -> None:
        try:
            result = self.reconciler.reconcile(key, ctx)
        except ReconcileError as e:
            self._log_retry(key, sanitize_exception(e), type(e.cause).__name__)
            self.queue.add_rate_limited(key)
            return
        except Exception as e:
            # Unexpected errors must not stop the worker
            logger.exception(f"Unexpected error reconciling tenant {key}")
            self._log_retry(key, sanitize_exception(e), type(e).__name__)
            self.queue.add_rate_limited(key)
            return

        self.queue.forget(key)
        if result.requeue_after is not None:
            self.queue.add_after(key, result.requeue_after)

    def _log_retry(self, key: str, message: str, error_type: str) -> None:
        log_resource_event(
            logger,
            resource_kind=KIND_TENANT,
            resource_name=key,
            event="reconcile",
            reason="ReconcileFailed",
            message=f"Reconcile failed, retrying with backoff: {message}",
            level=logging.ERROR,
            error_type=error_type,
            retries=self.queue.num_requeues(key),
        )
