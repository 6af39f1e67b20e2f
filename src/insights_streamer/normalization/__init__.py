"""Record normalization pipeline.

Components, leaf-first:
- classify: PayloadKind tagging at the record boundary
- flatten: nested record -> single-level mapping
- serialize: flattened values -> bool/str
- severity: level name -> sink severity, and the minimum-level gate
- envelope: shape selection and envelope assembly (EnvelopeBuilder)
"""

from insights_streamer.normalization.classify import UNDEFINED, classify, error_fields, is_error_like
from insights_streamer.normalization.envelope import EnvelopeBuilder, select_telemetry_type
from insights_streamer.normalization.flatten import CIRCULAR_REFERENCE, flatten
from insights_streamer.normalization.serialize import serialize, serialize_value
from insights_streamer.normalization.severity import SEVERITY_TABLE, map_severity, should_emit

__all__ = [
    "CIRCULAR_REFERENCE",
    "SEVERITY_TABLE",
    "UNDEFINED",
    "EnvelopeBuilder",
    "classify",
    "error_fields",
    "flatten",
    "is_error_like",
    "map_severity",
    "select_telemetry_type",
    "serialize",
    "serialize_value",
    "should_emit",
]
