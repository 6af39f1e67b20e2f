# src/insights_streamer/normalization/classify.py
"""Payload classification at the record boundary.

Every value in a record is tagged with a PayloadKind exactly once; the
flattener and the envelope builder switch on the tag instead of testing
types ad hoc.
"""

import traceback
from collections.abc import Mapping
from typing import Any, Final

from insights_streamer.contracts.enums import PayloadKind


class _Undefined:
    """Marker for a value that was never set (as opposed to None)."""

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Undefined":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "_Undefined":
        return self

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Final = _Undefined()

_ERROR_ATTRIBUTES = ("name", "message", "stack")


def _read_attribute(value: Any, attr: str) -> Any:
    """getattr that yields UNDEFINED instead of raising, whatever a property throws."""
    try:
        return getattr(value, attr)
    except Exception:
        return UNDEFINED


def is_error_like(value: Any) -> bool:
    """True for exceptions and for objects exposing name, message and stack.

    Mappings and strings never count, even when they carry those keys.
    """
    if isinstance(value, BaseException):
        return True
    if isinstance(value, Mapping | str | bytes):
        return False
    return all(_read_attribute(value, attr) is not UNDEFINED for attr in _ERROR_ATTRIBUTES)


def classify(value: Any) -> PayloadKind:
    """Tag a single record value.

    Order matters: missing first, then error-like (an exception is also an
    object), then mappings, then primitive scalars.
    """
    if value is None or value is UNDEFINED:
        return PayloadKind.MISSING
    if is_error_like(value):
        return PayloadKind.ERROR_LIKE
    if isinstance(value, Mapping):
        return PayloadKind.NESTED_RECORD
    if isinstance(value, str | int | float | bool):
        return PayloadKind.SCALAR
    return PayloadKind.OPAQUE


def _message(error: BaseException) -> Any:
    try:
        return str(error)
    except Exception:
        return UNDEFINED


def error_fields(error: Any) -> dict[str, Any]:
    """Extract the diagnostic fields of an error-like value.

    Always yields ``name``, ``message`` and ``stack`` first, followed by any
    ad-hoc public attributes the error carries. For exceptions the standard
    fields are derived from the class name, ``str(exc)`` and the formatted
    traceback; other error-like objects supply them as attributes, and an
    absent one is UNDEFINED.
    """
    if isinstance(error, BaseException):
        fields: dict[str, Any] = {
            "name": type(error).__name__,
            "message": _message(error),
            "stack": "".join(traceback.format_exception(error)),
        }
    else:
        fields = {attr: _read_attribute(error, attr) for attr in _ERROR_ATTRIBUTES}

    try:
        extra = vars(error)
    except TypeError:
        # __slots__ objects expose no ad-hoc fields
        extra = {}
    for key, value in extra.items():
        if not key.startswith("_"):
            fields[key] = value
    return fields
