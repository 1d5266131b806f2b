from __future__ import annotations

import json
from typing import Any, Mapping, Protocol

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .entry import Entry, EntryTable
from .errors import CodecError


class Codec(Protocol):
    def encode(self, entries: Mapping[str, Entry]) -> bytes:
        """Serialize the full entry map."""
        ...

    def decode(self, data: bytes) -> dict[str, Entry]:
        """Rebuild the full entry map, raising CodecError on malformed input."""
        ...


class JsonCodec(Codec):
    """
    Pretty-printed UTF-8 JSON, one object keyed by (namespaced) key.

    - Empty or whitespace-only input decodes to an empty map.
    - NaN/Infinity are rejected on encode so the output is always valid JSON.
    """

    def __init__(self, *, indent: int | None = 2, sort_keys: bool = True) -> None:
        self._indent = indent if indent and indent > 0 else None
        self._sort_keys = sort_keys

    def encode(self, entries: Mapping[str, Entry]) -> bytes:
        doc = EntryTable(dict(entries)).to_disk_doc()
        try:
            text = json.dumps(doc, indent=self._indent, sort_keys=self._sort_keys, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise CodecError(f"cannot encode entries: {e}") from e
        return (text + "\n").encode("utf-8")

    def decode(self, data: bytes) -> dict[str, Entry]:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CodecError(f"persisted data is not valid UTF-8: {e}") from e
        if not text.strip():
            return {}
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise CodecError(f"persisted data is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise CodecError(f"persisted document must be an object, got {type(raw).__name__}")
        try:
            return EntryTable.from_disk_doc(raw).root
        except ValidationError as e:
            raise CodecError(f"persisted document has invalid entries: {e}") from e


def to_payload(value: Any) -> Any:
    """Convert a caller value into the JSON-compatible payload stored in an Entry."""
    try:
        payload = to_jsonable_python(value)
        json.dumps(payload, allow_nan=False)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise CodecError(f"cannot encode value of type {type(value).__name__}: {e}") from e
    return payload
