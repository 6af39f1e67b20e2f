# src/insights_streamer/streamer/transports/azure_monitor.py
"""Azure Monitor transport for envelopes.

Ships envelopes to Application Insights using the
azure-monitor-opentelemetry-exporter package. Each envelope becomes one
OpenTelemetry span, shaped so the exporter maps it onto the matching
Application Insights telemetry type:

- Request   -> SERVER span (http.url, http.status_code, status from success)
- Trace     -> INTERNAL span carrying one span event named after the message
- Exception -> INTERNAL span carrying an "exception" span event
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry.sdk.trace import Event, ReadableSpan
from opentelemetry.sdk.trace.id_generator import RandomIdGenerator

from insights_streamer import __version__
from insights_streamer.contracts.envelopes import ExceptionEnvelope, RequestEnvelope, TraceEnvelope
from insights_streamer.contracts.errors import TransportError
from insights_streamer.streamer.transports.console import describe_exception

if TYPE_CHECKING:
    from azure.monitor.opentelemetry.exporter import AzureMonitorTraceExporter

    from insights_streamer.contracts.enums import TelemetryType
    from insights_streamer.contracts.envelopes import Envelope

logger = structlog.get_logger(__name__)

_id_generator = RandomIdGenerator()


class _SyntheticReadableSpan(ReadableSpan):
    """A ReadableSpan built directly from an envelope.

    Spans are normally created by the SDK while tracing; envelopes arrive
    after the fact, so we construct finished spans ourselves.
    """

    def __init__(
        self,
        name: str,
        attributes: dict[str, Any],
        start_time: int,
        end_time: int,
        kind: Any,  # SpanKind
        status: Any,  # Status
        events: tuple[Event, ...] = (),
        resource: Any | None = None,  # Resource - optional, defaults to empty
    ) -> None:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.util.instrumentation import InstrumentationScope
        from opentelemetry.trace import SpanContext, TraceFlags

        context = SpanContext(
            trace_id=_id_generator.generate_trace_id(),
            span_id=_id_generator.generate_span_id(),
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )
        super().__init__(
            name=name,
            context=context,
            parent=None,
            resource=resource if resource is not None else Resource.create({}),
            attributes=attributes,
            events=events,
            links=(),
            kind=kind,
            instrumentation_scope=InstrumentationScope(
                name="insights_streamer",
                version=__version__,
            ),
            status=status,
            start_time=start_time,
            end_time=end_time,
        )


def _duration_ns(duration: Any) -> int:
    """Request durations are milliseconds; anything non-numeric counts as 0."""
    if isinstance(duration, bool) or not isinstance(duration, int | float):
        return 0
    return max(int(duration * 1_000_000), 0)


class AzureMonitorTransport:
    """Ship envelopes to Azure Monitor / Application Insights.

    Configuration options:
        connection_string: Application Insights connection string. Optional
            when an instrumentation key is available (injected from
            APPINSIGHTS_INSTRUMENTATIONKEY or settings.instrumentation_key).
        batch_size: Number of envelopes to buffer before export (default: 100)
        service_name: Cloud role name (default: "insights-streamer")

    Example configuration:
        transport:
          name: azure_monitor
          options:
            connection_string: ${APPLICATIONINSIGHTS_CONNECTION_STRING}
            batch_size: 50

    Thread safety:
        Assumes single-threaded access. Buffer is not thread-safe.
    """

    _name = "azure_monitor"

    def __init__(self) -> None:
        """Initialize unconfigured transport."""
        self._connection_string: str | None = None
        self._batch_size: int = 100
        self._service_name: str = "insights-streamer"
        self._common_properties: dict[str, str] = {}
        self._azure_exporter: AzureMonitorTraceExporter | None = None
        self._resource: Any | None = None
        self._buffer: list[_SyntheticReadableSpan] = []
        self._configured: bool = False

    @property
    def name(self) -> str:
        """Transport name for configuration reference."""
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        """Configure the transport.

        Args:
            config: Transport options containing:
                - connection_string (optional if instrumentation_key given)
                - instrumentation_key (injected by the factory)
                - batch_size (optional): Buffer size before auto-flush
                - service_name (optional): Resource service name
                - common_properties (injected by the factory)

        Raises:
            TransportError: If no credentials are available, option types are
                wrong, or the Azure Monitor exporter is not installed
        """
        connection_string = config.get("connection_string")
        if connection_string is None:
            instrumentation_key = config.get("instrumentation_key")
            if not instrumentation_key:
                raise TransportError(
                    self._name,
                    "Azure Monitor transport requires 'connection_string' or an instrumentation key",
                )
            connection_string = f"InstrumentationKey={instrumentation_key}"
        if not isinstance(connection_string, str):
            raise TransportError(
                self._name,
                f"'connection_string' must be a string, got {type(connection_string).__name__}",
            )
        self._connection_string = connection_string

        batch_size = config.get("batch_size", 100)
        if not isinstance(batch_size, int) or isinstance(batch_size, bool):
            raise TransportError(
                self._name,
                f"'batch_size' must be an integer, got {type(batch_size).__name__}",
            )
        if batch_size < 1:
            raise TransportError(
                self._name,
                f"batch_size must be >= 1, got {batch_size}",
            )
        self._batch_size = batch_size

        service_name = config.get("service_name", "insights-streamer")
        if not isinstance(service_name, str):
            raise TransportError(
                self._name,
                f"'service_name' must be a string, got {type(service_name).__name__}",
            )
        self._service_name = service_name
        self._common_properties = dict(config.get("common_properties", {}))

        try:
            from azure.monitor.opentelemetry.exporter import AzureMonitorTraceExporter
            from opentelemetry.sdk.resources import SERVICE_NAME, Resource
            from opentelemetry.sdk.trace import TracerProvider

            # An explicit TracerProvider keeps the exporter from falling back
            # to the global ProxyTracerProvider, which has no resource.
            self._resource = Resource.create({SERVICE_NAME: self._service_name})
            tracer_provider = TracerProvider(resource=self._resource)
            self._azure_exporter = AzureMonitorTraceExporter(
                connection_string=self._connection_string,
                tracer_provider=tracer_provider,
            )
        except ImportError as e:
            raise TransportError(
                self._name,
                f"Azure Monitor exporter not installed: {e}. Install with: pip install azure-monitor-opentelemetry-exporter",
            ) from e

        self._configured = True
        self._buffer = []

        logger.debug(
            "Azure Monitor transport configured",
            batch_size=self._batch_size,
            service_name=self._service_name,
            common_properties=len(self._common_properties),
        )

    def track(self, envelope: Envelope, telemetry_type: TelemetryType) -> None:
        """Buffer one envelope; flush when batch_size is reached. MUST NOT raise."""
        if not self._configured:
            logger.warning(
                "Azure Monitor transport not configured, dropping envelope",
                telemetry_type=str(telemetry_type),
            )
            return

        try:
            self._buffer.append(self._envelope_to_span(envelope))
            if len(self._buffer) >= self._batch_size:
                self._flush_batch()
        except Exception as e:
            logger.warning(
                "Failed to buffer envelope",
                transport=self._name,
                telemetry_type=str(telemetry_type),
                error=str(e),
            )

    def _attributes(self, envelope: Envelope) -> dict[str, Any]:
        attributes: dict[str, Any] = {**self._common_properties, **envelope.properties}
        attributes["insights_streamer.telemetry_type"] = envelope.telemetry_type.value
        return attributes

    def _envelope_to_span(self, envelope: Envelope) -> _SyntheticReadableSpan:
        """Convert an envelope to a finished span."""
        from opentelemetry.trace import SpanKind, Status, StatusCode

        now = time.time_ns()
        attributes = self._attributes(envelope)

        match envelope:
            case RequestEnvelope():
                if envelope.url is not None:
                    attributes["http.url"] = str(envelope.url)
                if envelope.result_code is not None:
                    attributes["http.status_code"] = str(envelope.result_code)
                if envelope.success is None:
                    status = Status(StatusCode.UNSET)
                else:
                    status = Status(StatusCode.OK if envelope.success else StatusCode.ERROR)
                return _SyntheticReadableSpan(
                    name=str(envelope.name) if envelope.name is not None else "request",
                    attributes=attributes,
                    start_time=now - _duration_ns(envelope.duration),
                    end_time=now,
                    kind=SpanKind.SERVER,
                    status=status,
                    resource=self._resource,
                )

            case ExceptionEnvelope():
                described = describe_exception(envelope.exception)
                event = Event(
                    name="exception",
                    attributes={
                        "exception.type": str(described.get("name")),
                        "exception.message": str(described.get("message")),
                        "exception.stacktrace": str(described.get("stack") or ""),
                    },
                    timestamp=now,
                )
                return _SyntheticReadableSpan(
                    name="exception",
                    attributes=attributes,
                    start_time=now,
                    end_time=now,
                    kind=SpanKind.INTERNAL,
                    status=Status(StatusCode.ERROR),
                    events=(event,),
                    resource=self._resource,
                )

            case TraceEnvelope():
                event = Event(
                    name=str(envelope.message),
                    attributes={"severityLevel": int(envelope.severity)},
                    timestamp=now,
                )
                return _SyntheticReadableSpan(
                    name="trace",
                    attributes=attributes,
                    start_time=now,
                    end_time=now,
                    kind=SpanKind.INTERNAL,
                    status=Status(StatusCode.UNSET),
                    events=(event,),
                    resource=self._resource,
                )

        raise TypeError(f"Unsupported envelope: {type(envelope).__name__}")

    def _flush_batch(self) -> None:
        """Export buffered spans to Azure Monitor."""
        if not self._buffer:
            return

        if not self._azure_exporter:
            logger.warning("Azure Monitor transport not initialized, dropping batch")
            self._buffer.clear()
            return

        try:
            self._azure_exporter.export(self._buffer)
            logger.debug(
                "Azure Monitor batch exported",
                span_count=len(self._buffer),
            )
        except Exception as e:
            logger.warning(
                "Failed to export Azure Monitor batch",
                transport=self._name,
                span_count=len(self._buffer),
                error=str(e),
            )
        finally:
            self._buffer = []

    def flush(self) -> None:
        """Flush any buffered envelopes to Azure Monitor."""
        try:
            self._flush_batch()
        except Exception as e:
            logger.warning(
                "Failed to flush Azure Monitor transport",
                transport=self._name,
                error=str(e),
            )

    def close(self) -> None:
        """Flush remaining envelopes and shut the exporter down. Idempotent."""
        self.flush()
        if self._azure_exporter:
            try:
                self._azure_exporter.shutdown()
            except Exception as e:
                logger.warning(
                    "Failed to shutdown Azure Monitor transport",
                    transport=self._name,
                    error=str(e),
                )
            self._azure_exporter = None
        self._configured = False
