# src/insights_streamer/streamer/transports/console.py
"""Console transport for envelopes.

Writes one line per envelope to stdout or stderr, in JSON or a
human-readable format. Used for local debugging and by the CLI.
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, Literal, TextIO, TypeGuard

import structlog

from insights_streamer.contracts.envelopes import ExceptionEnvelope, RequestEnvelope, TraceEnvelope
from insights_streamer.contracts.errors import TransportError
from insights_streamer.normalization.classify import UNDEFINED, error_fields, is_error_like

if TYPE_CHECKING:
    from insights_streamer.contracts.enums import TelemetryType
    from insights_streamer.contracts.envelopes import Envelope

logger = structlog.get_logger(__name__)


def _is_valid_format(v: str) -> TypeGuard[Literal["json", "pretty"]]:
    """TypeGuard for format validation - enables mypy type narrowing."""
    return v in {"json", "pretty"}


def _is_valid_output(v: str) -> TypeGuard[Literal["stdout", "stderr"]]:
    """TypeGuard for output validation - enables mypy type narrowing."""
    return v in {"stdout", "stderr"}


def describe_exception(payload: Any) -> dict[str, Any]:
    """Render an exception payload as a plain dict of its diagnostic fields."""
    if is_error_like(payload):
        return {key: (None if value is UNDEFINED else value) for key, value in error_fields(payload).items()}
    if isinstance(payload, dict):
        return payload
    return {"message": payload}


def envelope_to_wire(envelope: Envelope, common_properties: dict[str, str]) -> dict[str, Any]:
    """Render an envelope with the sink's field names.

    Global properties are merged under the envelope's own properties.
    """
    properties = {**common_properties, **envelope.properties}
    match envelope:
        case TraceEnvelope():
            body: dict[str, Any] = {
                "message": envelope.message,
                "severity": int(envelope.severity),
            }
        case RequestEnvelope():
            body = {
                "name": envelope.name,
                "url": envelope.url,
                "duration": envelope.duration,
                "resultCode": envelope.result_code,
                "success": envelope.success,
            }
        case ExceptionEnvelope():
            body = {"exception": describe_exception(envelope.exception)}
    return {"telemetryType": envelope.telemetry_type.value, **body, "properties": properties}


class ConsoleTransport:
    """Write envelopes to stdout/stderr.

    Configuration options:
        format: Output format - "json" (default) or "pretty"
        output: Output stream - "stdout" (default) or "stderr"

    Example configuration:
        transport:
          name: console
          options:
            format: pretty
            output: stderr
    """

    _name = "console"

    _VALID_FORMATS: frozenset[str] = frozenset({"json", "pretty"})
    _VALID_OUTPUTS: frozenset[str] = frozenset({"stdout", "stderr"})

    def __init__(self) -> None:
        """Initialize unconfigured transport."""
        self._format: Literal["json", "pretty"] = "json"
        self._output: Literal["stdout", "stderr"] = "stdout"
        self._stream: TextIO = sys.stdout
        self._common_properties: dict[str, str] = {}

    @property
    def name(self) -> str:
        """Transport name for configuration reference."""
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        """Configure the transport.

        Args:
            config: Transport options plus injected common_properties

        Raises:
            TransportError: If configuration values are invalid
        """
        format_value = config.get("format", "json")
        if not isinstance(format_value, str):
            raise TransportError(
                self._name,
                f"'format' must be a string, got {type(format_value).__name__}",
            )
        if _is_valid_format(format_value):
            self._format = format_value
        else:
            raise TransportError(
                self._name,
                f"Invalid format '{format_value}'. Must be one of: {', '.join(sorted(self._VALID_FORMATS))}",
            )

        output_value = config.get("output", "stdout")
        if not isinstance(output_value, str):
            raise TransportError(
                self._name,
                f"'output' must be a string, got {type(output_value).__name__}",
            )
        if _is_valid_output(output_value):
            self._output = output_value
        else:
            raise TransportError(
                self._name,
                f"Invalid output '{output_value}'. Must be one of: {', '.join(sorted(self._VALID_OUTPUTS))}",
            )
        self._stream = sys.stdout if self._output == "stdout" else sys.stderr
        self._common_properties = dict(config.get("common_properties", {}))

        logger.debug(
            "Console transport configured",
            format=self._format,
            output=self._output,
        )

    def track(self, envelope: Envelope, telemetry_type: TelemetryType) -> None:
        """Write one envelope. MUST NOT raise."""
        try:
            wire = envelope_to_wire(envelope, self._common_properties)
            if self._format == "json":
                line = json.dumps(wire, default=str)
            else:
                line = self._format_pretty(wire)
            print(line, file=self._stream)
        except Exception as e:
            logger.warning(
                "Failed to track envelope",
                transport=self._name,
                telemetry_type=str(telemetry_type),
                error=str(e),
            )

    def _format_pretty(self, wire: dict[str, Any]) -> str:
        """Format: [TYPE] headline (key=value, ...)"""
        telemetry_type = wire["telemetryType"]
        if telemetry_type == "trace":
            headline = f"{wire['message']} severity={wire['severity']}"
        elif telemetry_type == "request":
            headline = f"{wire['name']} {wire['url']} -> {wire['resultCode']} in {wire['duration']}"
        else:
            exception = wire["exception"]
            headline = f"{exception.get('name')}: {exception.get('message')}"

        details = ", ".join(f"{key}={value}" for key, value in sorted(wire["properties"].items()))
        if details:
            return f"[{telemetry_type.upper()}] {headline} ({details})"
        return f"[{telemetry_type.upper()}] {headline}"

    def flush(self) -> None:
        """Flush the underlying stream."""
        try:
            self._stream.flush()
        except Exception as e:
            logger.warning(
                "Failed to flush console stream",
                transport=self._name,
                error=str(e),
            )

    def close(self) -> None:
        """No-op: the transport does not own stdout/stderr."""
        pass
