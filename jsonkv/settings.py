from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    # Persistence policy defaults for Store.open
    auto_save: bool
    backup: bool

    # JSON layout of the persisted document
    indent: int
    sort_keys: bool


def get_settings(env_file: str | os.PathLike[str] | None = None) -> Settings:
    if env_file is not None:
        # Values already present in the environment win over the file.
        load_dotenv(env_file, override=False)

    return Settings(
        auto_save=_env_bool("JSONKV_AUTO_SAVE", False),
        backup=_env_bool("JSONKV_BACKUP", False),
        indent=_env_int("JSONKV_INDENT", 2),
        sort_keys=_env_bool("JSONKV_SORT_KEYS", True),
    )
