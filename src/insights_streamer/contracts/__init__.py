"""Shared types crossing the normalization <-> transport boundary."""

from insights_streamer.contracts.config import RuntimeStreamerConfig, TransportConfig, resolve_min_level
from insights_streamer.contracts.enums import PayloadKind, SeverityLevel, TelemetryType
from insights_streamer.contracts.envelopes import (
    Envelope,
    ExceptionEnvelope,
    PropertyValue,
    RequestEnvelope,
    TraceEnvelope,
)
from insights_streamer.contracts.errors import TransportError
from insights_streamer.contracts.levels import DEFAULT_LEVELS, LevelVocabulary

__all__ = [
    "DEFAULT_LEVELS",
    "Envelope",
    "ExceptionEnvelope",
    "LevelVocabulary",
    "PayloadKind",
    "PropertyValue",
    "RequestEnvelope",
    "RuntimeStreamerConfig",
    "SeverityLevel",
    "TelemetryType",
    "TraceEnvelope",
    "TransportConfig",
    "TransportError",
    "resolve_min_level",
]
