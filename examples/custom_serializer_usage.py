"""examples/custom_serializer_usage.py - Plug in a custom Serializer.

Shows how to subclass Serializer to redact sensitive keys before any record
reaches a sink, while delegating everything else to RichSerializer.

Run:
    python examples/custom_serializer_usage.py
"""

from datetime import date
from typing import Any, Dict, Optional

from sessionlog import ContextLogger, RichSerializer, SerializedValue, Serializer


class RedactingSerializer(Serializer):
    """Replaces the values of sensitive top-level keys with ``"***"``.

    Example:
        >>> RedactingSerializer().serialize({"password": "hunter2"}).json
        {'password': '***'}
    """

    SENSITIVE = frozenset({"password", "token", "api_key"})

    def __init__(self) -> None:
        self._inner = RichSerializer()

    def serialize(self, value: Any) -> SerializedValue:
        if isinstance(value, dict):
            value = {k: ("***" if k in self.SENSITIVE else v) for k, v in value.items()}
        return self._inner.serialize(value)

    def deserialize(self, json: Any, meta: Optional[Dict[str, Any]] = None) -> Any:
        return self._inner.deserialize(json, meta)


if __name__ == "__main__":
    log = ContextLogger("/tmp/sessionlog_redacted", serializer=RedactingSerializer())
    log.info("Login", {"user": "ana", "password": "hunter2", "since": date(2024, 1, 15)})
    log.with_session({"token": "abc"}).warn("Token refresh")
    log.close()
