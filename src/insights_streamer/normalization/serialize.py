# src/insights_streamer/normalization/serialize.py
"""Coerce flattened values into sink-safe scalars.

The sink accepts only booleans and strings as property values. Rules,
applied in order:

- bool -> itself (truthiness coercion; only ever reached by real bools,
  so ``1`` goes through the string branch and becomes ``"1"``)
- UNDEFINED -> ``"undefined"``
- any other falsy value (None, 0, NaN, "", empty containers) -> ``"null"``
- str -> unchanged
- anything else -> ``str(value)``, or ``"non-serializable value"`` when the
  conversion fails (objects refusing bool() skip the falsy rule)

serialize() never raises.
"""

import math
from collections.abc import Mapping
from typing import Any

from insights_streamer.contracts.envelopes import PropertyValue
from insights_streamer.normalization.classify import UNDEFINED

NULL = "null"
UNDEFINED_TEXT = "undefined"
NON_SERIALIZABLE = "non-serializable value"


def _is_falsy(value: Any) -> bool:
    """Truthiness test for objects that may refuse bool() (treated as truthy).

    NaN counts as falsy so it reaches the sink as "null", not "nan".
    """
    if isinstance(value, float) and math.isnan(value):
        return True
    try:
        return not value
    except Exception:
        return False


def serialize_value(value: Any) -> PropertyValue:
    """Coerce a single value. See module docstring for the rules."""
    if isinstance(value, bool):
        return bool(value)
    if value is UNDEFINED:
        return UNDEFINED_TEXT

    if _is_falsy(value):
        return NULL

    if isinstance(value, str):
        return value
    try:
        text = str(value)
    except Exception:
        return NON_SERIALIZABLE
    if not isinstance(text, str):
        return NON_SERIALIZABLE
    return text


def serialize(flattened: Mapping[str, Any]) -> dict[str, PropertyValue]:
    """Serialize every value of a flattened record.

    Args:
        flattened: Single-level mapping, typically the output of flatten()

    Returns:
        New dict with the same keys and bool/str values only
    """
    return {key: serialize_value(value) for key, value in flattened.items()}
