"""Health check and metrics endpoints for the operator."""

from __future__ import annotations

import threading
from typing import Any, Callable

from prometheus_client import make_wsgi_app
from werkzeug.serving import make_server
from werkzeug.wrappers import Response

ReadyCheck = Callable[[], bool]


def create_combined_wsgi_app(ready_check: ReadyCheck | None = None) -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    Args:
        ready_check: Callable reporting whether the controller is able to
            process tenants. ``/readyz`` answers 503 while it returns False.

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> list[bytes]:
        """WSGI app that routes /healthz and /readyz, delegates /metrics to prometheus."""
        path = environ.get("PATH_INFO", "")

        if path == "/healthz":
            response = Response('{"status":"ok"}', mimetype="application/json", status=200)
            return response(environ, start_response)
        if path == "/readyz":
            if ready_check is None or ready_check():
                response = Response('{"status":"ready"}', mimetype="application/json", status=200)
            else:
                response = Response('{"status":"not ready"}', mimetype="application/json", status=503)
            return response(environ, start_response)
        return metrics_app(environ, start_response)

    return combined_app


def start_metrics_server(port: int, ready_check: ReadyCheck | None = None) -> Any:
    """Serve metrics and health endpoints from a background thread.

    Returns:
        The running werkzeug server, so callers can shut it down
    """
    server = make_server("", port, create_combined_wsgi_app(ready_check), threaded=True)
    thread = threading.Thread(target=server.serve_forever, name="metrics-server", daemon=True)
    thread.start()
    return server
