"""Tests for the Azure Monitor transport.

Tests cover:
- Configuration validation (credentials, batch_size, service_name)
- Instrumentation-key fallback for the connection string
- Envelope-to-span conversion per telemetry type
- Buffering, batch export and close lifecycle
- Export failures never reach the caller

Note: These tests replace azure.monitor.opentelemetry.exporter with a mock
module so no network client is ever created. The OpenTelemetry SDK is real.
"""

import sys
from collections.abc import Iterator
from types import ModuleType
from unittest.mock import MagicMock

import pytest
from opentelemetry.trace import SpanKind, StatusCode

from insights_streamer.contracts.enums import SeverityLevel, TelemetryType
from insights_streamer.contracts.envelopes import ExceptionEnvelope, RequestEnvelope, TraceEnvelope
from insights_streamer.contracts.errors import TransportError
from insights_streamer.streamer.transports.azure_monitor import AzureMonitorTransport

CONNECTION_STRING = "InstrumentationKey=00000000-0000-0000-0000-000000000000"


@pytest.fixture
def exporter_class(monkeypatch: pytest.MonkeyPatch) -> Iterator[MagicMock]:
    """Mock AzureMonitorTraceExporter class, installed in sys.modules."""
    mock_class = MagicMock()
    mock_class.return_value = MagicMock()

    mock_module = ModuleType("azure.monitor.opentelemetry.exporter")
    mock_module.AzureMonitorTraceExporter = mock_class  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "azure.monitor.opentelemetry.exporter", mock_module)
    yield mock_class


@pytest.fixture
def transport(exporter_class: MagicMock) -> AzureMonitorTransport:
    configured = AzureMonitorTransport()
    configured.configure({"connection_string": CONNECTION_STRING, "batch_size": 10})
    return configured


def _exported_spans(exporter_class: MagicMock) -> list:
    sdk = exporter_class.return_value
    return [span for call in sdk.export.call_args_list for span in call.args[0]]


class TestConfiguration:
    """configure() validation."""

    def test_name(self) -> None:
        assert AzureMonitorTransport().name == "azure_monitor"

    def test_missing_credentials(self, exporter_class: MagicMock) -> None:
        with pytest.raises(TransportError, match="requires 'connection_string' or an instrumentation key"):
            AzureMonitorTransport().configure({"instrumentation_key": None})
        exporter_class.assert_not_called()

    def test_instrumentation_key_fallback(self, exporter_class: MagicMock) -> None:
        AzureMonitorTransport().configure({"instrumentation_key": "abc-123"})
        assert exporter_class.call_args.kwargs["connection_string"] == "InstrumentationKey=abc-123"

    def test_explicit_connection_string_wins(self, exporter_class: MagicMock) -> None:
        AzureMonitorTransport().configure({"connection_string": CONNECTION_STRING, "instrumentation_key": "abc-123"})
        assert exporter_class.call_args.kwargs["connection_string"] == CONNECTION_STRING

    def test_exporter_gets_tracer_provider_with_service_name(self, exporter_class: MagicMock) -> None:
        AzureMonitorTransport().configure({"connection_string": CONNECTION_STRING, "service_name": "checkout"})
        provider = exporter_class.call_args.kwargs["tracer_provider"]
        assert provider.resource.attributes["service.name"] == "checkout"

    @pytest.mark.parametrize(
        ("options", "message"),
        [
            ({"connection_string": 42}, "'connection_string' must be a string, got int"),
            ({"batch_size": 0}, "batch_size must be >= 1, got 0"),
            ({"batch_size": True}, "'batch_size' must be an integer, got bool"),
            ({"batch_size": "10"}, "'batch_size' must be an integer, got str"),
            ({"service_name": 3}, "'service_name' must be a string, got int"),
        ],
    )
    def test_invalid_options(self, exporter_class: MagicMock, options: dict, message: str) -> None:
        config = {"connection_string": CONNECTION_STRING, **options}
        with pytest.raises(TransportError, match=message):
            AzureMonitorTransport().configure(config)


class TestSpanConversion:
    """Each telemetry type maps to a distinct span shape."""

    def test_trace_becomes_internal_span_with_event(
        self, transport: AzureMonitorTransport, exporter_class: MagicMock
    ) -> None:
        envelope = TraceEnvelope(message="cache warm", severity=SeverityLevel.INFORMATION, properties={"n": "3"})
        transport.track(envelope, TelemetryType.TRACE)
        transport.flush()

        (span,) = _exported_spans(exporter_class)
        assert span.kind is SpanKind.INTERNAL
        assert span.attributes["n"] == "3"
        assert span.attributes["insights_streamer.telemetry_type"] == "trace"
        (event,) = span.events
        assert event.name == "cache warm"
        assert event.attributes["severityLevel"] == 1

    def test_request_becomes_server_span(self, transport: AzureMonitorTransport, exporter_class: MagicMock) -> None:
        envelope = RequestEnvelope(
            name="GET /health",
            url="https://api.example/health",
            duration=250,
            result_code=503,
            success=False,
            properties={},
        )
        transport.track(envelope, TelemetryType.REQUEST)
        transport.flush()

        (span,) = _exported_spans(exporter_class)
        assert span.name == "GET /health"
        assert span.kind is SpanKind.SERVER
        assert span.attributes["http.url"] == "https://api.example/health"
        assert span.attributes["http.status_code"] == "503"
        assert span.status.status_code is StatusCode.ERROR
        assert span.end_time - span.start_time == 250_000_000

    def test_request_without_success_has_unset_status(
        self, transport: AzureMonitorTransport, exporter_class: MagicMock
    ) -> None:
        envelope = RequestEnvelope(name=None, url=None, duration="fast", result_code=None, success=None, properties={})
        transport.track(envelope, TelemetryType.REQUEST)
        transport.flush()

        (span,) = _exported_spans(exporter_class)
        assert span.name == "request"
        assert span.status.status_code is StatusCode.UNSET
        assert "http.url" not in span.attributes
        assert span.end_time == span.start_time

    def test_exception_becomes_exception_event(
        self, transport: AzureMonitorTransport, exporter_class: MagicMock
    ) -> None:
        envelope = ExceptionEnvelope(exception=ValueError("bad sku"), properties={"err/name": "ValueError"})
        transport.track(envelope, TelemetryType.EXCEPTION)
        transport.flush()

        (span,) = _exported_spans(exporter_class)
        assert span.status.status_code is StatusCode.ERROR
        (event,) = span.events
        assert event.name == "exception"
        assert event.attributes["exception.type"] == "ValueError"
        assert event.attributes["exception.message"] == "bad sku"
        assert "ValueError: bad sku" in event.attributes["exception.stacktrace"]

    def test_common_properties_are_attributes(self, exporter_class: MagicMock) -> None:
        transport = AzureMonitorTransport()
        transport.configure({"connection_string": CONNECTION_STRING, "common_properties": {"ROLE": "api", "n": "g"}})
        transport.track(TraceEnvelope("m", SeverityLevel.VERBOSE, {"n": "3"}), TelemetryType.TRACE)
        transport.flush()

        (span,) = _exported_spans(exporter_class)
        assert span.attributes["ROLE"] == "api"
        assert span.attributes["n"] == "3"


class TestLifecycle:
    """Buffering, flushing and shutdown."""

    def test_batch_size_triggers_export(self, exporter_class: MagicMock) -> None:
        transport = AzureMonitorTransport()
        transport.configure({"connection_string": CONNECTION_STRING, "batch_size": 2})
        envelope = TraceEnvelope("m", SeverityLevel.VERBOSE, {})

        transport.track(envelope, TelemetryType.TRACE)
        exporter_class.return_value.export.assert_not_called()
        transport.track(envelope, TelemetryType.TRACE)
        assert exporter_class.return_value.export.call_count == 1
        assert len(_exported_spans(exporter_class)) == 2

    def test_empty_flush_does_not_export(self, transport: AzureMonitorTransport, exporter_class: MagicMock) -> None:
        transport.flush()
        exporter_class.return_value.export.assert_not_called()

    def test_export_failure_is_swallowed(self, transport: AzureMonitorTransport, exporter_class: MagicMock) -> None:
        exporter_class.return_value.export.side_effect = ConnectionError("ingestion endpoint down")
        transport.track(TraceEnvelope("m", SeverityLevel.VERBOSE, {}), TelemetryType.TRACE)
        transport.flush()
        # Buffer was dropped, not retried
        transport.flush()
        assert exporter_class.return_value.export.call_count == 1

    def test_track_before_configure_drops(self) -> None:
        AzureMonitorTransport().track(TraceEnvelope("m", SeverityLevel.VERBOSE, {}), TelemetryType.TRACE)

    def test_close_flushes_and_is_idempotent(
        self, transport: AzureMonitorTransport, exporter_class: MagicMock
    ) -> None:
        transport.track(TraceEnvelope("m", SeverityLevel.VERBOSE, {}), TelemetryType.TRACE)
        transport.close()
        transport.close()

        sdk = exporter_class.return_value
        assert sdk.export.call_count == 1
        sdk.shutdown.assert_called_once()

    def test_track_after_close_drops(self, transport: AzureMonitorTransport, exporter_class: MagicMock) -> None:
        transport.close()
        transport.track(TraceEnvelope("m", SeverityLevel.VERBOSE, {}), TelemetryType.TRACE)
        transport.flush()
        exporter_class.return_value.export.assert_not_called()
