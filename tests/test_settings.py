from __future__ import annotations

from pathlib import Path

import pytest

from jsonkv import Settings, Store, get_settings


def test_defaults():
    s = get_settings()
    assert s == Settings(auto_save=False, backup=False, indent=2, sort_keys=True)


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("JSONKV_AUTO_SAVE", "yes")
    monkeypatch.setenv("JSONKV_BACKUP", "on")
    monkeypatch.setenv("JSONKV_INDENT", "4")
    monkeypatch.setenv("JSONKV_SORT_KEYS", "0")

    s = get_settings()
    assert s.auto_save is True
    assert s.backup is True
    assert s.indent == 4
    assert s.sort_keys is False


def test_bad_indent_raises(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("JSONKV_INDENT", "wide")
    with pytest.raises(ValueError):
        get_settings()


def test_env_file_is_loaded_but_real_env_wins(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    env_file = tmp_path / "local.env"
    env_file.write_text("JSONKV_BACKUP=true\nJSONKV_AUTO_SAVE=true\nJSONKV_INDENT=0\n", encoding="utf-8")
    monkeypatch.setenv("JSONKV_AUTO_SAVE", "false")

    s = get_settings(env_file)
    assert s.backup is True
    assert s.auto_save is False
    assert s.indent == 0


def test_open_uses_settings_from_env(monkeypatch: pytest.MonkeyPatch, store_path: Path):
    monkeypatch.setenv("JSONKV_AUTO_SAVE", "1")

    kv = Store.open(store_path)
    kv.set("k", "v")
    assert Store.open(store_path).get("k") == "v"


def test_explicit_flags_beat_settings(monkeypatch: pytest.MonkeyPatch, store_path: Path):
    monkeypatch.setenv("JSONKV_AUTO_SAVE", "1")

    kv = Store.open(store_path, auto_save=False)
    kv.set("k", "v")
    assert not store_path.exists()


def test_compact_layout_from_settings(store_path: Path):
    settings = Settings(auto_save=True, backup=False, indent=0, sort_keys=True)

    kv = Store.open(store_path, settings=settings)
    kv.set("b", 2)
    kv.set("a", 1)

    raw = store_path.read_text(encoding="utf-8")
    assert raw.count("\n") == 1
    assert raw.index('"a"') < raw.index('"b"')
