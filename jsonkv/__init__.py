from __future__ import annotations

from .clock import Clock, ManualClock, SystemClock
from .codec import Codec, JsonCodec
from .entry import Entry
from .errors import CodecError, IoError, JsonKVError
from .persistence import PersistenceController
from .settings import Settings, get_settings
from .shared import AsyncStore, LockedStore
from .sinks import ByteSink, FileSink, MemorySink
from .store import Store

__all__ = [
    "Store",
    "PersistenceController",
    "Entry",
    "Codec",
    "JsonCodec",
    "ByteSink",
    "FileSink",
    "MemorySink",
    "Clock",
    "SystemClock",
    "ManualClock",
    "JsonKVError",
    "CodecError",
    "IoError",
    "Settings",
    "get_settings",
    "LockedStore",
    "AsyncStore",
]
