# src/insights_streamer/normalization/flatten.py
"""Flatten nested records into a single-level mapping.

Example:
    >>> record = {"foo": "hey", "bar": {"yipi": "kong", "ka": {"yei": "diddy"}}, "baz": "ho"}
    >>> flatten(record)
    {'foo': 'hey', 'bar/yipi': 'kong', 'bar/ka': {'yei': 'diddy'}, 'baz': 'ho'}
    >>> flatten(record, deep=True)
    {'foo': 'hey', 'bar/yipi': 'kong', 'bar/ka/yei': 'diddy', 'baz': 'ho'}

Known limitation: keys are not disambiguated after joining. ``{"a/b": 1,
"a": {"b": 2}}`` flattens to ``{"a/b": 2}`` - the later entry wins.
"""

from collections.abc import Mapping
from typing import Any

from insights_streamer.contracts.enums import PayloadKind
from insights_streamer.normalization.classify import classify, error_fields

# Emitted in place of a mapping that contains itself
CIRCULAR_REFERENCE = "[Circular]"

# Flattened key -> (value, ids of the mappings the value was reached through)
_Entries = dict[str, tuple[Any, frozenset[int]]]


def _flatten_pass(entries: _Entries, separator: str) -> _Entries:
    """Expand every nested record and error-like value by one level."""
    flattened: _Entries = {}
    for key, (value, ancestry) in entries.items():
        kind = classify(value)
        if kind is PayloadKind.NESTED_RECORD:
            if id(value) in ancestry:
                flattened[key] = (CIRCULAR_REFERENCE, ancestry)
                continue
            lineage = ancestry | {id(value)}
            for child_key, child in value.items():
                flattened[f"{key}{separator}{child_key}"] = (child, lineage)
        elif kind is PayloadKind.ERROR_LIKE:
            for field_name, field_value in error_fields(value).items():
                flattened[f"{key}{separator}{field_name}"] = (field_value, ancestry)
        else:
            flattened[key] = (value, ancestry)
    return flattened


def _has_nested_records(entries: _Entries) -> bool:
    return any(classify(value) is PayloadKind.NESTED_RECORD for value, _ in entries.values())


def flatten(record: Mapping[str, Any], deep: bool = False, separator: str = "/") -> dict[str, Any]:
    """Convert a nested record into a single-level mapping.

    Nested mappings contribute one entry per child, keyed
    ``parent + separator + child``. Error-like values always contribute
    ``name``, ``message`` and ``stack`` entries plus one per ad-hoc field.
    Everything else is copied through under its own key.

    With ``deep=True`` the whole intermediate mapping is flattened again
    until no nested mapping remains. Error-like values never trigger a pass
    of their own, so one that only surfaces in the final pass stays whole.
    Depth is bounded only by the input; a mapping reached again through
    its own descendants is replaced by ``"[Circular]"`` so cyclic input
    still terminates.

    Args:
        record: The record to flatten. Not modified.
        deep: Keep flattening until no nested mappings remain
        separator: Joins path segments

    Returns:
        New single-level dict
    """
    root = frozenset({id(record)})
    entries: _Entries = {key: (value, root) for key, value in record.items()}

    entries = _flatten_pass(entries, separator)
    while deep and _has_nested_records(entries):
        entries = _flatten_pass(entries, separator)

    return {key: value for key, (value, _) in entries.items()}
