# src/insights_streamer/normalization/severity.py
"""Severity mapping and minimum-level gating.

Two independent lookups:
- map_severity(): level name -> sink SeverityLevel (explicit table)
- should_emit(): level name vs configured minimum, compared by ordinal
  position in the LevelVocabulary
"""

from types import MappingProxyType
from typing import Any

from insights_streamer.contracts.enums import SeverityLevel
from insights_streamer.contracts.levels import LevelVocabulary

SEVERITY_TABLE: MappingProxyType[str, SeverityLevel] = MappingProxyType(
    {
        "debug": SeverityLevel.VERBOSE,
        "info": SeverityLevel.INFORMATION,
        "notice": SeverityLevel.INFORMATION,
        "warning": SeverityLevel.WARNING,
        "error": SeverityLevel.ERROR,
        "critical": SeverityLevel.CRITICAL,
        "alert": SeverityLevel.CRITICAL,
        "emergency": SeverityLevel.CRITICAL,
    }
)

_DEFAULT_VOCABULARY = LevelVocabulary()


def map_severity(level: Any) -> SeverityLevel:
    """Map a level name to the sink's severity.

    Unrecognized or absent names map to VERBOSE - never an error.
    """
    if not isinstance(level, str):
        return SeverityLevel.VERBOSE
    return SEVERITY_TABLE.get(level, SeverityLevel.VERBOSE)


def should_emit(
    level: Any,
    minimum: int | str,
    vocabulary: LevelVocabulary = _DEFAULT_VOCABULARY,
) -> bool:
    """Decide whether a record at ``level`` passes the minimum-level gate.

    Filter logic:
    - The record's level is looked up in the vocabulary; unknown -> ordinal 0
    - ``minimum`` is an ordinal, or a level name looked up the same way
    - Suppress (False) when the record's ordinal is strictly lower

    So an unrecognized level only passes when the minimum is also 0.

    Example:
        >>> should_emit("warning", "info")
        True
        >>> should_emit("debug", 1)
        False
    """
    minimum_ordinal = vocabulary.ordinal(minimum) if isinstance(minimum, str) else minimum
    return vocabulary.ordinal(level) >= minimum_ordinal
