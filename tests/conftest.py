from __future__ import annotations

import os
from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from jsonkv.clock import ManualClock  # noqa: E402

START = 1_700_000_000


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Keep JSONKV_* settings from the developer's shell (or a previous dotenv load) out of tests.
    """
    for name in list(os.environ):
        if name.startswith("JSONKV_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "data.json"
