from __future__ import annotations

import contextlib
import os
import shutil
import threading
from pathlib import Path
from typing import Mapping, Protocol, Union

from .errors import IoError
from .locks import GLOBAL_DOCUMENT_LOCKS, DocumentLockRegistry

Resource = Union[str, "os.PathLike[str]"]


class ByteSink(Protocol):
    """
    Minimal storage capability: whole-resource reads and whole-resource atomic replaces.
    """

    def read_all(self, resource: Resource) -> bytes | None:
        """Return the full contents, or None when the resource does not exist."""
        ...

    def write_all_atomic(self, resource: Resource, data: bytes) -> None:
        """Replace the full contents so no reader ever sees a partial write."""
        ...

    def exists(self, resource: Resource) -> bool:
        ...

    def copy(self, resource: Resource, target: Resource) -> None:
        """Copy the full contents of resource over target."""
        ...


def suffixed(resource: Resource, suffix: str) -> Resource:
    """`data.json` -> `data.json.bak`; plain string ids get the suffix appended."""
    if isinstance(resource, os.PathLike):
        path = Path(resource)
        return path.with_name(path.name + suffix)
    return f"{resource}{suffix}"


class FileSink(ByteSink):
    """
    Filesystem sink.

    - Writes go to `<name>.tmp`, are fsynced, then renamed over the target.
    - A failed write removes the temp file and leaves the target untouched.
    - Writers to the same document inside this process are serialized
      through a DocumentLock covering the target and its temp file.
    """

    def __init__(self, locks: DocumentLockRegistry | None = None) -> None:
        self._locks = GLOBAL_DOCUMENT_LOCKS if locks is None else locks

    def read_all(self, resource: Resource) -> bytes | None:
        path = Path(resource)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise IoError(f"failed to read {path}: {e}") from e

    def write_all_atomic(self, resource: Resource, data: bytes) -> None:
        path = Path(resource)
        with self._locks.lock_for(path) as doc:
            tmp_path = doc.temp
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with tmp_path.open("wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                tmp_path.replace(path)
            except OSError as e:
                with contextlib.suppress(OSError):
                    tmp_path.unlink(missing_ok=True)
                raise IoError(f"failed to write {path}: {e}") from e

    def exists(self, resource: Resource) -> bool:
        return Path(resource).exists()

    def copy(self, resource: Resource, target: Resource) -> None:
        path = Path(resource)
        with self._locks.lock_for(path):
            try:
                shutil.copyfile(path, Path(target))
            except OSError as e:
                raise IoError(f"failed to copy {path} -> {target}: {e}") from e


class MemorySink(ByteSink):
    """
    Process-local sink keyed by resource id.

    Stands in for storage that is not a filesystem (browser local storage,
    a flash page, a test double). Each assignment replaces the whole value,
    so writes are atomic by construction.
    """

    def __init__(self, initial: Mapping[str, bytes] | None = None) -> None:
        self._guard = threading.Lock()
        self._items: dict[str, bytes] = dict(initial or {})

    def read_all(self, resource: Resource) -> bytes | None:
        with self._guard:
            return self._items.get(os.fspath(resource))

    def write_all_atomic(self, resource: Resource, data: bytes) -> None:
        with self._guard:
            self._items[os.fspath(resource)] = bytes(data)

    def exists(self, resource: Resource) -> bool:
        with self._guard:
            return os.fspath(resource) in self._items

    def copy(self, resource: Resource, target: Resource) -> None:
        key = os.fspath(resource)
        with self._guard:
            if key not in self._items:
                raise IoError(f"failed to copy {key}: resource does not exist")
            self._items[os.fspath(target)] = self._items[key]

    def snapshot(self) -> dict[str, bytes]:
        with self._guard:
            return dict(self._items)
