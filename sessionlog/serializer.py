"""serializer.py - Pluggable rich serialization for ``data`` and ``session``.

Plain ``json`` cannot represent dates, sets, tuples, decimals, non-finite
floats, dicts with non-string keys, or self-referencing structures. Before a
record reaches any sink, ContextLogger passes ``data`` and ``session`` through
a Serializer, which returns two things:

    json:  A JSON-safe rendering of the value (what the sinks print).
    meta:  A flat mapping of dotted paths to type tags, describing which
           nodes of ``json`` must be converted back on the reading side.

``RichSerializer`` is the default implementation. Custom serializers only need
to subclass ``Serializer`` and implement both methods.

Example::

    >>> from datetime import date
    >>> out = RichSerializer().serialize({"day": date(2024, 1, 15), "ids": {3}})
    >>> out.json
    {'day': '2024-01-15', 'ids': [3]}
    >>> out.meta
    {'.day': 'date', '.ids': 'set'}
    >>> RichSerializer().deserialize(out.json, out.meta)
    {'day': datetime.date(2024, 1, 15), 'ids': {3}}
"""

import base64
import math
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path, PurePath
from typing import Any, Dict, Optional


class SerializedValue:
    """The JSON-safe form of a value plus its type annotations."""

    __slots__ = ("json", "meta")

    def __init__(self, json: Any, meta: Optional[Dict[str, Any]] = None) -> None:
        self.json = json
        self.meta = meta or {}

    def __repr__(self) -> str:  # pragma: no cover
        return f"SerializedValue({self.json!r}, meta={self.meta!r})"


class Serializer(ABC):
    """Abstract base class for record value serializers."""

    @abstractmethod
    def serialize(self, value: Any) -> SerializedValue:
        """Convert ``value`` into a JSON-safe value plus annotations."""

    @abstractmethod
    def deserialize(self, json: Any, meta: Optional[Dict[str, Any]] = None) -> Any:
        """Rebuild the original value from ``serialize()`` output."""


def _escape(key: Any) -> str:
    return str(key).replace("\\", "\\\\").replace(".", "\\.")


def _child(path: str, key: Any) -> str:
    # The root is "" and every child path starts with ".", so no key can
    # produce the root path.
    return f"{path}.{_escape(key)}"


class RichSerializer(Serializer):
    """Default serializer covering the common non-JSON-native Python types.

    Annotated types and their JSON form:

        ``datetime`` / ``date``   ISO-8601 string
        ``tuple`` / ``set`` / ``frozenset``   list
        ``Decimal`` / ``UUID`` / ``PurePath``   string
        ``bytes`` / ``bytearray``   base64 string (``bytes``)
        ``float`` NaN / +-inf   ``"NaN"``, ``"Infinity"``, ``"-Infinity"``
        dict with non-string keys   list of ``[key, value]`` pairs (``map``)
        reference cycle   ``None`` annotated ``["ref", <path of target>]``

    Any other object is rendered with ``repr()`` and left unannotated, so
    serialization never fails on an exotic value.
    """

    def serialize(self, value: Any) -> SerializedValue:
        meta: Dict[str, Any] = {}
        encoded = self._encode(value, "", meta, {})
        return SerializedValue(encoded, meta)

    def deserialize(self, json: Any, meta: Optional[Dict[str, Any]] = None) -> Any:
        return self._decode(json, "", meta or {}, {})

    # ---------------------------------------------------------------------- #
    # Encoding
    # ---------------------------------------------------------------------- #

    def _encode(self, value: Any, path: str, meta: Dict[str, Any], active: Dict[int, str]) -> Any:
        if value is None or isinstance(value, (bool, int, str)):
            return value
        if isinstance(value, float):
            if math.isfinite(value):
                return value
            meta[path] = "number"
            if math.isnan(value):
                return "NaN"
            return "Infinity" if value > 0 else "-Infinity"
        if isinstance(value, datetime):
            meta[path] = "datetime"
            return value.isoformat()
        if isinstance(value, date):
            meta[path] = "date"
            return value.isoformat()
        if isinstance(value, Decimal):
            meta[path] = "decimal"
            return str(value)
        if isinstance(value, uuid.UUID):
            meta[path] = "uuid"
            return str(value)
        if isinstance(value, PurePath):
            meta[path] = "path"
            return str(value)
        if isinstance(value, (bytes, bytearray)):
            meta[path] = "bytes"
            return base64.b64encode(bytes(value)).decode("ascii")
        if isinstance(value, (dict, list, tuple, set, frozenset)):
            # Only containers currently being walked count as cycles; a value
            # shared by two siblings is simply written twice.
            if id(value) in active:
                meta[path] = ["ref", active[id(value)]]
                return None
            active[id(value)] = path
            try:
                return self._encode_container(value, path, meta, active)
            finally:
                del active[id(value)]
        return repr(value)

    def _encode_container(self, value, path, meta, active):
        if isinstance(value, dict):
            if all(isinstance(key, str) for key in value):
                return {
                    key: self._encode(item, _child(path, key), meta, active)
                    for key, item in value.items()
                }
            meta[path] = "map"
            pairs = []
            for index, (key, item) in enumerate(value.items()):
                pair_path = _child(path, index)
                pairs.append(
                    [
                        self._encode(key, _child(pair_path, 0), meta, active),
                        self._encode(item, _child(pair_path, 1), meta, active),
                    ]
                )
            return pairs
        if isinstance(value, tuple):
            meta[path] = "tuple"
        elif isinstance(value, frozenset):
            meta[path] = "frozenset"
        elif isinstance(value, set):
            meta[path] = "set"
        return [
            self._encode(item, _child(path, index), meta, active)
            for index, item in enumerate(value)
        ]

    # ---------------------------------------------------------------------- #
    # Decoding
    # ---------------------------------------------------------------------- #

    def _decode(self, node: Any, path: str, meta: Dict[str, Any], built: Dict[str, Any]) -> Any:
        tag = meta.get(path)

        if isinstance(tag, list) and tag and tag[0] == "ref":
            # Targets that are tuples or sets are not registered, so those
            # cycles come back as None.
            return built.get(tag[1])

        if isinstance(node, dict):
            result: Dict[str, Any] = {}
            built[path] = result
            for key, item in node.items():
                result[key] = self._decode(item, _child(path, key), meta, built)
            return result

        if isinstance(node, list):
            if tag == "map":
                mapping: Dict[Any, Any] = {}
                built[path] = mapping
                for index, pair in enumerate(node):
                    pair_path = _child(path, index)
                    key = self._decode(pair[0], _child(pair_path, 0), meta, built)
                    mapping[key] = self._decode(pair[1], _child(pair_path, 1), meta, built)
                return mapping
            if tag is None:
                items: list = []
                built[path] = items
                items.extend(
                    self._decode(item, _child(path, index), meta, built)
                    for index, item in enumerate(node)
                )
                return items
            items = [
                self._decode(item, _child(path, index), meta, built)
                for index, item in enumerate(node)
            ]
            if tag == "tuple":
                return tuple(items)
            if tag == "set":
                return set(items)
            if tag == "frozenset":
                return frozenset(items)
            return items

        if tag is None or node is None:
            return node
        if tag == "number":
            return float(node)
        if tag == "datetime":
            return datetime.fromisoformat(node)
        if tag == "date":
            return date.fromisoformat(node)
        if tag == "decimal":
            return Decimal(node)
        if tag == "uuid":
            return uuid.UUID(node)
        if tag == "path":
            return Path(node)
        if tag == "bytes":
            return base64.b64decode(node)
        return node
