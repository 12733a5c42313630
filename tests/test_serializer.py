"""test_serializer.py - Unit tests for RichSerializer.

Covers:
    - Plain JSON values pass through with empty meta
    - Annotated types: datetime, date, set, tuple, Decimal, UUID, Path, bytes
    - Non-finite floats
    - Dicts with non-string keys ("map")
    - Keys containing dots
    - Reference cycles
    - Unknown objects fall back to repr() and are not annotated
    - Custom Serializer subclasses
"""

import math
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from sessionlog.serializer import RichSerializer, SerializedValue, Serializer


@pytest.fixture
def serializer():
    return RichSerializer()


class TestPlainValues:
    def test_plain_json_passes_through(self, serializer):
        """JSON-native values are returned unchanged with no annotations."""
        value = {"a": 1, "b": [True, None, "x", 2.5], "c": {"d": "e"}}
        out = serializer.serialize(value)
        assert out.json == value
        assert out.meta == {}

    def test_serialize_returns_new_containers(self, serializer):
        """The input is never mutated or aliased."""
        value = {"items": [1, 2]}
        out = serializer.serialize(value)
        out.json["items"].append(3)
        assert value == {"items": [1, 2]}

    def test_none_serializes_to_none(self, serializer):
        """None stays None."""
        assert serializer.serialize(None).json is None


class TestAnnotatedTypes:
    def test_datetime_round_trip(self, serializer):
        """Datetimes become ISO strings and come back as datetimes."""
        moment = datetime(2024, 1, 15, 12, 34, 56, tzinfo=timezone.utc)
        out = serializer.serialize({"at": moment})
        assert out.json == {"at": "2024-01-15T12:34:56+00:00"}
        assert out.meta == {".at": "datetime"}
        assert serializer.deserialize(out.json, out.meta) == {"at": moment}

    def test_date_is_not_mistaken_for_datetime(self, serializer):
        """Plain dates carry their own tag."""
        out = serializer.serialize([date(2024, 2, 29)])
        assert out.meta == {".0": "date"}
        assert serializer.deserialize(out.json, out.meta) == [date(2024, 2, 29)]

    def test_collections_round_trip(self, serializer):
        """Sets, frozensets and tuples are restored to their own types."""
        value = {"s": {1, 2}, "f": frozenset(["x"]), "t": (1, "a")}
        out = serializer.serialize(value)
        assert out.meta == {".s": "set", ".f": "frozenset", ".t": "tuple"}
        assert serializer.deserialize(out.json, out.meta) == value

    def test_scalar_wrappers_round_trip(self, serializer):
        """Decimal, UUID, Path and bytes survive the round trip."""
        ident = uuid.uuid4()
        value = {
            "price": Decimal("19.99"),
            "id": ident,
            "file": Path("/tmp/report.csv"),
            "blob": b"\x00\xffdata",
        }
        out = serializer.serialize(value)
        assert out.json["price"] == "19.99"
        assert out.json["id"] == str(ident)
        assert serializer.deserialize(out.json, out.meta) == value

    def test_non_finite_floats(self, serializer):
        """NaN and infinities are encoded as strings and restored."""
        out = serializer.serialize([math.nan, math.inf, -math.inf, 1.5])
        assert out.json == ["NaN", "Infinity", "-Infinity", 1.5]
        restored = serializer.deserialize(out.json, out.meta)
        assert math.isnan(restored[0])
        assert restored[1:] == [math.inf, -math.inf, 1.5]

    def test_non_string_keys_become_map(self, serializer):
        """A dict with non-string keys is written as key/value pairs."""
        value = {1: "one", (2, 3): "pair"}
        out = serializer.serialize(value)
        assert out.json == [[1, "one"], [[2, 3], "pair"]]
        assert out.meta[""] == "map"
        assert serializer.deserialize(out.json, out.meta) == value

    def test_dotted_keys_are_escaped_in_paths(self, serializer):
        """Keys containing dots do not collide with nested paths."""
        value = {"a.b": date(2024, 1, 1), "a": {"b": "text"}}
        out = serializer.serialize(value)
        assert out.meta == {".a\\.b": "date"}
        assert serializer.deserialize(out.json, out.meta) == value

    def test_escaped_dot_does_not_collide_with_backslash_key(self, serializer):
        """A key ending in a backslash and a dotted key get distinct paths."""
        value = {"a.b": date(2024, 1, 1), "a\\": {"b": (1, 2)}}
        out = serializer.serialize(value)
        assert out.meta == {".a\\.b": "date", ".a\\\\.b": "tuple"}
        assert serializer.deserialize(out.json, out.meta) == value


class TestCyclesAndFallbacks:
    def test_self_referencing_dict(self, serializer):
        """A cycle is cut with None and restored as the same object."""
        value = {"name": "root"}
        value["self"] = value

        out = serializer.serialize(value)
        assert out.json == {"name": "root", "self": None}
        assert out.meta == {".self": ["ref", ""]}

        restored = serializer.deserialize(out.json, out.meta)
        assert restored["self"] is restored

    def test_cycle_through_empty_key_at_root(self, serializer):
        """An empty-string key never shares the root path."""
        value = {"x": 1}
        value[""] = value

        out = serializer.serialize(value)
        assert out.meta == {".": ["ref", ""]}

        restored = serializer.deserialize(out.json, out.meta)
        assert restored["x"] == 1
        assert restored[""] is restored

    def test_self_referencing_list(self, serializer):
        """Lists can close a cycle too."""
        value = [1]
        value.append(value)
        out = serializer.serialize(value)
        restored = serializer.deserialize(out.json, out.meta)
        assert restored[0] == 1
        assert restored[1] is restored

    def test_shared_reference_is_not_a_cycle(self, serializer):
        """The same object under two siblings is written twice."""
        shared = {"k": 1}
        out = serializer.serialize({"a": shared, "b": shared})
        assert out.json == {"a": {"k": 1}, "b": {"k": 1}}
        assert out.meta == {}

    def test_unknown_object_falls_back_to_repr(self, serializer):
        """Objects with no known encoding are rendered with repr()."""

        class Widget:
            def __repr__(self):
                return "<Widget 7>"

        out = serializer.serialize({"w": Widget()})
        assert out.json == {"w": "<Widget 7>"}
        assert out.meta == {}


class TestCustomSerializer:
    def test_custom_serializer_subclass(self):
        """Subclasses only need serialize() and deserialize()."""

        class UpperSerializer(Serializer):
            def serialize(self, value):
                return SerializedValue({k.upper(): v for k, v in value.items()})

            def deserialize(self, json, meta=None):
                return {k.lower(): v for k, v in json.items()}

        out = UpperSerializer().serialize({"a": 1})
        assert out.json == {"A": 1}
        assert out.meta == {}

    def test_serializer_is_abstract(self):
        """The base class cannot be instantiated."""
        with pytest.raises(TypeError):
            Serializer()
