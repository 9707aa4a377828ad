"""Tests for health check endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from tenant_operator.health import create_combined_wsgi_app, start_metrics_server


def environ_for(path: str) -> dict:
    return {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": path,
        "SCRIPT_NAME": "",
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "wsgi.url_scheme": "http",
    }


class TestCombinedWsgiApp:
    """Test cases for combined WSGI application."""

    def test_healthz(self):
        """Test combined app handles /healthz."""
        app = create_combined_wsgi_app()
        start_response = MagicMock()
        result = app(environ_for("/healthz"), start_response)

        assert b'"status":"ok"' in b"".join(result)
        assert "200" in start_response.call_args[0][0]

    def test_readyz_without_check(self):
        """Test combined app handles /readyz."""
        app = create_combined_wsgi_app()
        result = app(environ_for("/readyz"), MagicMock())
        assert b'"status":"ready"' in b"".join(result)

    def test_readyz_not_ready(self):
        """Test /readyz reports 503 while the controller is not running."""
        app = create_combined_wsgi_app(ready_check=lambda: False)
        start_response = MagicMock()
        result = app(environ_for("/readyz"), start_response)

        assert b'"status":"not ready"' in b"".join(result)
        assert "503" in start_response.call_args[0][0]

    def test_content_type_is_json(self):
        """Test that content type is application/json."""
        app = create_combined_wsgi_app()
        start_response = MagicMock()
        app(environ_for("/healthz"), start_response)

        headers = start_response.call_args[0][1]
        content_type_header = [h for h in headers if h[0].lower() == "content-type"]
        assert "application/json" in content_type_header[0][1]

    @patch("tenant_operator.health.make_wsgi_app")
    def test_delegates_to_metrics(self, mock_make_wsgi):
        """Test combined app delegates /metrics to prometheus."""
        mock_metrics_app = MagicMock(return_value=[b"metrics data"])
        mock_make_wsgi.return_value = mock_metrics_app

        app = create_combined_wsgi_app()
        result = app(environ_for("/metrics"), MagicMock())

        assert mock_metrics_app.called
        assert result == [b"metrics data"]


class TestStartMetricsServer:
    """Test cases for the background metrics server."""

    @patch("tenant_operator.health.threading.Thread")
    @patch("tenant_operator.health.make_server")
    def test_serves_in_background(self, mock_make_server, mock_thread):
        server = start_metrics_server(8080)

        assert server is mock_make_server.return_value
        assert mock_make_server.call_args.args[:2] == ("", 8080)
        assert mock_make_server.call_args.kwargs == {"threaded": True}
        mock_thread.return_value.start.assert_called_once()
