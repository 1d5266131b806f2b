from __future__ import annotations

import os
import threading
import weakref
from pathlib import Path

TEMP_SUFFIX = ".tmp"


class DocumentLock:
    """
    Guards one persisted document file and its `<name>.tmp` sibling.

    `FileSink` holds it across the temp write and the rename, and across
    backup copies, so two writers in one process never interleave on the
    same temp file.
    """

    def __init__(self, target: Path) -> None:
        self.target = target
        self.temp = target.with_name(target.name + TEMP_SUFFIX)
        self._lock = threading.Lock()

    def __enter__(self) -> "DocumentLock":
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()


class DocumentLockRegistry:
    """
    Hands out one DocumentLock per resolved document path.

    Locks are held weakly: an entry lives only while some caller still
    references its lock, so opening many short-lived documents does not grow
    the registry.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, DocumentLock] = weakref.WeakValueDictionary()

    def lock_for(self, resource: str | os.PathLike[str]) -> DocumentLock:
        target = Path(resource).resolve()
        key = str(target)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = DocumentLock(target)
                self._locks[key] = lock
            return lock

    def active_count(self) -> int:
        with self._guard:
            return len(self._locks)


GLOBAL_DOCUMENT_LOCKS = DocumentLockRegistry()
