from __future__ import annotations

import json
from datetime import date

import pytest

from jsonkv import CodecError, Entry, JsonCodec
from jsonkv.codec import to_payload


def test_encode_is_sorted_pretty_json_with_trailing_newline():
    data = JsonCodec().encode({"b": Entry(value=2), "a": Entry(value=1, expires_at=10)})

    text = data.decode("utf-8")
    assert text.endswith("}\n")
    assert text.index('"a"') < text.index('"b"')
    assert json.loads(text) == {
        "a": {"value": 1, "expires_at": 10},
        "b": {"value": 2, "expires_at": None},
    }


def test_decode_ignores_unknown_entry_fields():
    entries = JsonCodec().decode(b'{"k": {"value": "v", "expires_at": null, "note": "x"}}')
    assert entries == {"k": Entry(value="v", expires_at=None)}


def test_decode_rejects_non_entry_values():
    with pytest.raises(CodecError):
        JsonCodec().decode(b'{"k": "bare string"}')


def test_to_payload_converts_rich_values():
    assert to_payload({"when": date(2024, 1, 2)}) == {"when": "2024-01-02"}
    assert sorted(to_payload({3, 1, 2})) == [1, 2, 3]
    with pytest.raises(CodecError):
        to_payload(float("inf"))
