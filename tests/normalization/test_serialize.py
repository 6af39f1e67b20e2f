"""Tests for value serialization.

The serializer must be total: every value becomes a bool or a str, and
nothing raises.
"""

from decimal import Decimal
from typing import Any

from hypothesis import given
from hypothesis import strategies as st

from insights_streamer.normalization.classify import UNDEFINED
from insights_streamer.normalization.serialize import NON_SERIALIZABLE, serialize, serialize_value


class Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("no string form")


class RefusesBool:
    def __bool__(self) -> bool:
        raise ValueError("ambiguous truth value")

    def __str__(self) -> str:
        return "refuses-bool"


class WrongStrType:
    def __str__(self) -> str:
        return 42  # type: ignore[return-value]


class TestSerializeRules:
    """Each documented rule, one at a time."""

    def test_booleans_pass_through(self) -> None:
        assert serialize({"a": True, "b": False}) == {"a": True, "b": False}

    def test_integers_use_string_branch(self) -> None:
        """1 is not a bool: it goes through string conversion."""
        assert serialize({"a": 1}) == {"a": "1"}
        assert serialize({"a": 2.5}) == {"a": "2.5"}

    def test_falsy_values_become_null(self) -> None:
        assert serialize({"none": None, "zero": 0, "empty": "", "list": [], "map": {}}) == {
            "none": "null",
            "zero": "null",
            "empty": "null",
            "list": "null",
            "map": "null",
        }

    def test_nan_is_null(self) -> None:
        assert serialize({"ratio": float("nan"), "inf": float("inf")}) == {"ratio": "null", "inf": "inf"}

    def test_undefined_is_told_apart_from_none(self) -> None:
        """The value's identity decides undefined vs null, never the key."""
        assert serialize({"a": UNDEFINED, "b": None}) == {"a": "undefined", "b": "null"}

    def test_falsy_key_does_not_change_result(self) -> None:
        assert serialize({"": None}) == {"": "null"}

    def test_strings_are_unchanged(self) -> None:
        assert serialize({"a": "hello"}) == {"a": "hello"}

    def test_objects_use_str(self) -> None:
        assert serialize({"d": Decimal("1.50"), "l": [1, 2]}) == {"d": "1.50", "l": "[1, 2]"}

    def test_unprintable_object_gets_sentinel(self) -> None:
        assert serialize_value(Unprintable()) == NON_SERIALIZABLE
        assert NON_SERIALIZABLE == "non-serializable value"

    def test_str_returning_non_string_gets_sentinel(self) -> None:
        assert serialize_value(WrongStrType()) == NON_SERIALIZABLE

    def test_object_refusing_bool_is_still_converted(self) -> None:
        assert serialize_value(RefusesBool()) == "refuses-bool"

    def test_exceptions_use_their_message(self) -> None:
        assert serialize_value(ValueError("bad input")) == "bad input"

    def test_keys_are_preserved(self) -> None:
        flattened = {"err/name": "Error", "count": 3}
        assert list(serialize(flattened)) == ["err/name", "count"]


_anything = st.one_of(
    st.none(),
    st.just(UNDEFINED),
    st.booleans(),
    st.integers(),
    st.floats(),
    st.text(),
    st.binary(),
    st.lists(st.integers(), max_size=3),
    st.dictionaries(st.text(max_size=3), st.integers(), max_size=3),
    st.builds(Unprintable),
    st.builds(RefusesBool),
    st.builds(WrongStrType),
)


class TestSerializeProperties:
    """Property-based totality."""

    @given(flattened=st.dictionaries(st.text(max_size=5), _anything))
    def test_serialize_is_total(self, flattened: dict[str, Any]) -> None:
        result = serialize(flattened)
        assert result.keys() == flattened.keys()
        for value in result.values():
            assert isinstance(value, bool | str)

    @given(value=st.one_of(st.integers(), st.floats(allow_nan=False), st.text()))
    def test_non_bool_scalars_become_strings(self, value: Any) -> None:
        assert isinstance(serialize_value(value), str)
