"""Tests for tracing configuration."""

from unittest.mock import MagicMock, patch

from opentelemetry import trace

from user_lookup.observability.tracing import configure_tracing


class TestConfigureTracing:
    """Tests for configure_tracing setup."""

    def test_sets_tracer_provider(self) -> None:
        app = MagicMock()
        with patch("user_lookup.observability.tracing.FastAPIInstrumentor"):
            configure_tracing(app=app, service_name="test-svc", environment="test")
        tracer = trace.get_tracer_provider().get_tracer("test")
        assert tracer is not None

    def test_instruments_fastapi_app(self) -> None:
        app = MagicMock()
        with patch(
            "user_lookup.observability.tracing.FastAPIInstrumentor"
        ) as mock_instrumentor:
            configure_tracing(app=app, service_name="test-svc", environment="test")
            mock_instrumentor.instrument_app.assert_called_once()
            call_kwargs = mock_instrumentor.instrument_app.call_args
            assert call_kwargs[1]["app"] is app

    def test_excludes_health_and_metrics_urls(self) -> None:
        app = MagicMock()
        with patch(
            "user_lookup.observability.tracing.FastAPIInstrumentor"
        ) as mock_instrumentor:
            configure_tracing(app=app, service_name="test-svc", environment="test")
            excluded = mock_instrumentor.instrument_app.call_args[1]["excluded_urls"]
            assert "healthz" in excluded
            assert "readyz" in excluded
            assert "metrics" in excluded

    def test_console_exporter_when_debug(self) -> None:
        app = MagicMock()
        with (
            patch("user_lookup.observability.tracing.FastAPIInstrumentor"),
            patch(
                "user_lookup.observability.tracing.ConsoleSpanExporter"
            ) as mock_console,
        ):
            configure_tracing(
                app=app, service_name="test-svc", environment="test", debug=True
            )
            mock_console.assert_called_once()

    def test_no_console_exporter_when_not_debug(self) -> None:
        app = MagicMock()
        with (
            patch("user_lookup.observability.tracing.FastAPIInstrumentor"),
            patch(
                "user_lookup.observability.tracing.ConsoleSpanExporter"
            ) as mock_console,
        ):
            configure_tracing(
                app=app, service_name="test-svc", environment="test", debug=False
            )
            mock_console.assert_not_called()
