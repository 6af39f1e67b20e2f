# src/insights_streamer/normalization/envelope.py
"""Envelope selection and assembly.

Shape precedence, first match wins:
1. ``err`` is error-like or a mapping      -> ExceptionEnvelope
2. ``req`` present and not missing, or
   ``url`` plus any of duration/resultCode/success -> RequestEnvelope
3. otherwise                                -> TraceEnvelope

Every envelope carries serialize(flatten(record)) as its properties. The
level gate runs before any of that work, so suppressed records cost one
lookup.
"""

import copy
from collections.abc import Mapping
from typing import Any

from insights_streamer.contracts.config import RuntimeStreamerConfig
from insights_streamer.contracts.enums import PayloadKind, TelemetryType
from insights_streamer.contracts.envelopes import (
    Envelope,
    ExceptionEnvelope,
    PropertyValue,
    RequestEnvelope,
    TraceEnvelope,
)
from insights_streamer.normalization.classify import classify
from insights_streamer.normalization.flatten import flatten
from insights_streamer.normalization.serialize import serialize
from insights_streamer.normalization.severity import map_severity, should_emit

# Well-known record fields
SEVERITY_FIELD = "severity"
MESSAGE_FIELD = "slug"
ERROR_FIELD = "err"
REQUEST_FIELD = "req"

# (envelope attribute, record field)
REQUEST_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "name"),
    ("url", "url"),
    ("duration", "duration"),
    ("result_code", "resultCode"),
    ("success", "success"),
)
_REQUEST_MARKERS = ("duration", "resultCode", "success")


def _present(record: Mapping[str, Any], field: str) -> bool:
    return classify(record.get(field)) is not PayloadKind.MISSING


# Only these describe an error; False, 0, "" or [] under `err` do not
_ERROR_PAYLOAD_KINDS = frozenset({PayloadKind.ERROR_LIKE, PayloadKind.NESTED_RECORD})


def _has_error_payload(record: Mapping[str, Any]) -> bool:
    return classify(record.get(ERROR_FIELD)) in _ERROR_PAYLOAD_KINDS


def select_telemetry_type(record: Mapping[str, Any]) -> TelemetryType:
    """Pick the envelope shape for a record."""
    if _has_error_payload(record):
        return TelemetryType.EXCEPTION
    if _present(record, REQUEST_FIELD):
        return TelemetryType.REQUEST
    if _present(record, "url") and any(marker in record for marker in _REQUEST_MARKERS):
        return TelemetryType.REQUEST
    return TelemetryType.TRACE


def copy_error_payload(error: Any) -> Any:
    """Shallow-copy an error payload without losing its type.

    Exceptions keep their class, args, attributes and traceback; mappings
    become plain dicts. Anything that refuses to be copied is passed
    through as-is.
    """
    if isinstance(error, Mapping):
        return dict(error)
    try:
        duplicate = copy.copy(error)
    except Exception:
        return error
    if isinstance(error, BaseException) and isinstance(duplicate, BaseException):
        duplicate = duplicate.with_traceback(error.__traceback__)
    return duplicate


def _request_value(record: Mapping[str, Any], field: str) -> Any:
    """Read a request field off the record, falling back to a ``req`` mapping."""
    if field in record:
        return record[field]
    request = record.get(REQUEST_FIELD)
    if isinstance(request, Mapping):
        return request.get(field)
    return None


class EnvelopeBuilder:
    """Turns records into envelopes according to a RuntimeStreamerConfig.

    Implements NormalizerProtocol. Holds no state besides the immutable
    config, so a single instance can serve every call site.
    """

    def __init__(self, config: RuntimeStreamerConfig) -> None:
        self._config = config

    @property
    def config(self) -> RuntimeStreamerConfig:
        return self._config

    def properties(self, record: Mapping[str, Any]) -> dict[str, PropertyValue]:
        """Flatten and serialize a whole record."""
        return serialize(flatten(record, self._config.deep, self._config.separator))

    def normalize(self, record: Mapping[str, Any]) -> Envelope | None:
        """Build the envelope for a record, or None if the level gate drops it."""
        level = record.get(SEVERITY_FIELD)
        if not should_emit(level, self._config.min_ordinal, self._config.vocabulary):
            return None

        telemetry_type = select_telemetry_type(record)
        if telemetry_type is TelemetryType.EXCEPTION:
            # Copy before flattening so the payload keeps its type
            exception = copy_error_payload(record[ERROR_FIELD])
            return ExceptionEnvelope(exception=exception, properties=self.properties(record))

        if telemetry_type is TelemetryType.REQUEST:
            values = {attr: _request_value(record, field) for attr, field in REQUEST_FIELDS}
            return RequestEnvelope(**values, properties=self.properties(record))

        return TraceEnvelope(
            message=record.get(MESSAGE_FIELD),
            severity=map_severity(level),
            properties=self.properties(record),
        )
