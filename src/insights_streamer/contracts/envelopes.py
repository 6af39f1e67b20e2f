"""Envelopes handed to the telemetry transport.

Each record dispatched through the pipeline becomes exactly one envelope.
All three variants carry the serialized (flat, scalar-only) record as
``properties``; the remaining fields are specific to the telemetry shape.

Field names follow Python conventions; transports translate them to the
sink's wire names (``result_code`` -> ``resultCode`` and so on).
"""

from dataclasses import dataclass
from typing import Any

from insights_streamer.contracts.enums import SeverityLevel, TelemetryType

# Values the serializer is allowed to produce.
PropertyValue = bool | str


@dataclass(frozen=True, slots=True)
class TraceEnvelope:
    """A plain log message.

    Attributes:
        message: Short summary taken from the record's ``slug`` field
        severity: Sink severity mapped from the record's level name
        properties: Flattened and serialized record
    """

    message: Any
    severity: SeverityLevel
    properties: dict[str, PropertyValue]

    @property
    def telemetry_type(self) -> TelemetryType:
        return TelemetryType.TRACE


@dataclass(frozen=True, slots=True)
class RequestEnvelope:
    """An incoming request, as recorded by the caller.

    Fields are copied off the record as-is; missing ones are None.
    """

    name: Any
    url: Any
    duration: Any
    result_code: Any
    success: Any
    properties: dict[str, PropertyValue]

    @property
    def telemetry_type(self) -> TelemetryType:
        return TelemetryType.REQUEST


@dataclass(frozen=True, slots=True)
class ExceptionEnvelope:
    """An error report.

    Attributes:
        exception: Shallow copy of the record's error payload, taken before
            flattening so its type and identity survive
        properties: Flattened and serialized record
    """

    exception: Any
    properties: dict[str, PropertyValue]

    @property
    def telemetry_type(self) -> TelemetryType:
        return TelemetryType.EXCEPTION


Envelope = TraceEnvelope | RequestEnvelope | ExceptionEnvelope
