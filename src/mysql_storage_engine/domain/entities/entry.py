"""Entry entity: one stored key/value record.

An entry is keyed by an externally assigned ``resource_id`` and holds an
arbitrary JSON-serializable value. On the way into MySQL the value is
encoded as a JSON document; on the way out it is decoded again.

aiomysql hands JSON columns back as text, so ``decode_document`` parses
strings. Values the driver already decoded (bytes for some collations,
dicts for custom converters) are handled too.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


def encode_document(value: Any) -> str:
    """Serialize a value to its JSON document form.

    Raises:
        TypeError: If the value is not JSON-serializable.
        ValueError: If the value contains NaN or infinity.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def decode_document(raw: Any) -> Any:
    """Deserialize a JSON document column value."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


@dataclass(frozen=True, slots=True)
class Entry:
    """A single key/value record.

    Attributes:
        resource_id: Primary key, unique within a table
        resource_data: The stored value
    """

    resource_id: str
    resource_data: Any

    def __post_init__(self) -> None:
        """Validate the entry."""
        if not isinstance(self.resource_id, str) or not self.resource_id:
            raise ValueError(f"resource_id must be a non-empty string, got {self.resource_id!r}")

    def to_row(self) -> tuple[str, str]:
        """Encode as an ``(id, data)`` row for INSERT."""
        return (self.resource_id, encode_document(self.resource_data))

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> Entry:
        """Decode an ``(id, data)`` row."""
        resource_id, data = row[0], row[1]
        return cls(resource_id=resource_id, resource_data=decode_document(data))

    def as_pair(self) -> tuple[str, Any]:
        """The ``(id, value)`` pair form hosts exchange."""
        return (self.resource_id, self.resource_data)
