"""Tests for health check endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from ssa_nginx_operator.health import create_combined_wsgi_app, start_metrics_server


def make_environ(path: str) -> dict:
    return {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": path,
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "wsgi.url_scheme": "http",
    }


class TestCombinedWsgiApp:
    """Test cases for combined WSGI application."""

    def test_combined_app_healthz(self):
        """Test combined app handles /healthz."""
        app = create_combined_wsgi_app()
        start_response = MagicMock()

        result = app(make_environ("/healthz"), start_response)

        assert b'"status":"ok"' in b"".join(result)
        assert "200" in start_response.call_args[0][0]

    def test_combined_app_readyz(self):
        """Test combined app handles /readyz."""
        app = create_combined_wsgi_app()
        start_response = MagicMock()

        result = app(make_environ("/readyz"), start_response)

        assert b'"status":"ready"' in b"".join(result)

    def test_content_type_is_json(self):
        """Test health responses are JSON."""
        app = create_combined_wsgi_app()
        start_response = MagicMock()

        app(make_environ("/healthz"), start_response)

        headers = start_response.call_args[0][1]
        content_type = [h[1] for h in headers if h[0].lower() == "content-type"]
        assert "application/json" in content_type[0]

    @patch("ssa_nginx_operator.health.make_wsgi_app")
    def test_combined_app_delegates_to_metrics(self, mock_make_wsgi):
        """Test combined app delegates /metrics to prometheus."""
        mock_metrics_app = MagicMock(return_value=[b"metrics data"])
        mock_make_wsgi.return_value = mock_metrics_app
        app = create_combined_wsgi_app()

        result = app(make_environ("/metrics"), MagicMock())

        assert mock_metrics_app.called
        assert result == [b"metrics data"]


class TestMetricsServer:
    """Tests for the metrics server thread."""

    @patch("ssa_nginx_operator.health.make_server")
    @patch("ssa_nginx_operator.health.threading.Thread")
    def test_start_metrics_server(self, mock_thread, mock_make_server):
        """Test metrics server runs on a daemon thread."""
        mock_server = MagicMock()
        mock_make_server.return_value = mock_server

        thread = start_metrics_server(9090)

        assert mock_make_server.call_args[0][1] == 9090
        assert mock_thread.call_args[1]["target"] == mock_server.serve_forever
        assert mock_thread.call_args[1]["daemon"] is True
        thread.start.assert_called_once()
