"""Tests for the console transport."""

import json
from typing import Any

import pytest

from insights_streamer.contracts.enums import SeverityLevel, TelemetryType
from insights_streamer.contracts.envelopes import ExceptionEnvelope, RequestEnvelope, TraceEnvelope
from insights_streamer.contracts.errors import TransportError
from insights_streamer.streamer.transports.console import ConsoleTransport, describe_exception, envelope_to_wire

TRACE = TraceEnvelope(message="disk almost full", severity=SeverityLevel.WARNING, properties={"disk/free": "3"})
REQUEST = RequestEnvelope(
    name="POST /pay",
    url="/pay",
    duration=87,
    result_code=201,
    success=True,
    properties={"url": "/pay"},
)


class TestConfigure:
    """Option validation."""

    def test_name(self) -> None:
        assert ConsoleTransport().name == "console"

    def test_defaults(self) -> None:
        transport = ConsoleTransport()
        transport.configure({})
        assert transport._format == "json"
        assert transport._output == "stdout"

    def test_invalid_format(self) -> None:
        with pytest.raises(TransportError, match="Invalid format 'xml'. Must be one of: json, pretty"):
            ConsoleTransport().configure({"format": "xml"})

    def test_format_must_be_string(self) -> None:
        with pytest.raises(TransportError, match="'format' must be a string, got int"):
            ConsoleTransport().configure({"format": 1})

    def test_invalid_output(self) -> None:
        with pytest.raises(TransportError, match="Invalid output 'file'. Must be one of: stderr, stdout"):
            ConsoleTransport().configure({"output": "file"})

    def test_output_must_be_string(self) -> None:
        with pytest.raises(TransportError, match="'output' must be a string, got NoneType"):
            ConsoleTransport().configure({"output": None})


class TestWireFormat:
    """envelope_to_wire() and describe_exception()."""

    def test_trace(self) -> None:
        wire = envelope_to_wire(TRACE, {})
        assert wire == {
            "telemetryType": "trace",
            "message": "disk almost full",
            "severity": 2,
            "properties": {"disk/free": "3"},
        }

    def test_request_uses_sink_field_names(self) -> None:
        wire = envelope_to_wire(REQUEST, {})
        assert wire["resultCode"] == 201
        assert wire["success"] is True
        assert "result_code" not in wire

    def test_common_properties_lose_to_record_properties(self) -> None:
        wire = envelope_to_wire(TRACE, {"disk/free": "global", "ROLE": "api"})
        assert wire["properties"] == {"disk/free": "3", "ROLE": "api"}

    def test_exception_from_real_error(self) -> None:
        wire = envelope_to_wire(ExceptionEnvelope(exception=KeyError("sku"), properties={}), {})
        assert wire["exception"]["name"] == "KeyError"
        assert wire["exception"]["message"] == "'sku'"

    def test_describe_exception_variants(self) -> None:
        assert describe_exception({"name": "Error"}) == {"name": "Error"}
        assert describe_exception("plain text") == {"message": "plain text"}


class TestTrack:
    """Output written to the configured stream."""

    def test_json_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        transport = ConsoleTransport()
        transport.configure({"common_properties": {"ROLE": "api"}})
        transport.track(TRACE, TelemetryType.TRACE)

        line = capsys.readouterr().out.strip()
        assert json.loads(line) == {
            "telemetryType": "trace",
            "message": "disk almost full",
            "severity": 2,
            "properties": {"ROLE": "api", "disk/free": "3"},
        }

    def test_pretty_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        transport = ConsoleTransport()
        transport.configure({"format": "pretty", "output": "stderr"})
        transport.track(TRACE, TelemetryType.TRACE)
        transport.track(REQUEST, TelemetryType.REQUEST)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.splitlines() == [
            "[TRACE] disk almost full severity=2 (disk/free=3)",
            "[REQUEST] POST /pay /pay -> 201 in 87 (url=/pay)",
        ]

    def test_pretty_exception_without_properties(self, capsys: pytest.CaptureFixture[str]) -> None:
        transport = ConsoleTransport()
        transport.configure({"format": "pretty"})
        envelope = ExceptionEnvelope(exception={"name": "Error", "message": "x"}, properties={})
        transport.track(envelope, TelemetryType.EXCEPTION)
        assert capsys.readouterr().out.strip() == "[EXCEPTION] Error: x"

    def test_unrenderable_payload_is_stringified(self, capsys: pytest.CaptureFixture[str]) -> None:
        transport = ConsoleTransport()
        transport.configure({})
        marker = object()
        transport.track(ExceptionEnvelope(exception={"obj": marker}, properties={}), TelemetryType.EXCEPTION)
        assert str(marker) in capsys.readouterr().out

    def test_track_never_raises(self, capsys: pytest.CaptureFixture[str]) -> None:
        class BrokenStream:
            def write(self, text: Any) -> None:
                raise OSError("stream closed")

            def flush(self) -> None:
                raise OSError("stream closed")

        transport = ConsoleTransport()
        transport.configure({})
        transport._stream = BrokenStream()  # type: ignore[assignment]
        transport.track(TRACE, TelemetryType.TRACE)
        transport.flush()
        transport.close()
