"""Enumerations shared across the normalization pipeline and transports."""

from enum import IntEnum, StrEnum


class SeverityLevel(IntEnum):
    """Severity levels understood by the telemetry sink.

    Values match the Application Insights ``SeverityLevel`` contract so they
    can be written to the wire without translation.
    """

    VERBOSE = 0
    INFORMATION = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


class TelemetryType(StrEnum):
    """Envelope shape selected for a record."""

    TRACE = "trace"
    REQUEST = "request"
    EXCEPTION = "exception"


class PayloadKind(StrEnum):
    """Classification of a single record value.

    Computed once per value by ``normalization.classify.classify`` so that
    flattening and envelope selection switch on an explicit tag.

    Values:
        MISSING: None or the UNDEFINED sentinel
        ERROR_LIKE: An exception, or an object exposing name/message/stack
        NESTED_RECORD: A mapping with its own key/value pairs
        SCALAR: str, int, float or bool
        OPAQUE: Anything else (lists, custom objects, ...)
    """

    MISSING = "missing"
    ERROR_LIKE = "error_like"
    NESTED_RECORD = "nested_record"
    SCALAR = "scalar"
    OPAQUE = "opaque"
