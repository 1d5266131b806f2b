from __future__ import annotations

import asyncio
import threading
from datetime import timedelta
from typing import Any

from .store import Store


class LockedStore:
    """
    Serializes every read, write and persistence call on a Store behind one lock.

    Namespaced views created through `with_namespace` share the lock, since
    they share the underlying entry map.
    """

    def __init__(self, store: Store, lock: threading.RLock | None = None) -> None:
        self._store = store
        self._lock = lock or threading.RLock()

    @property
    def store(self) -> Store:
        return self._store

    def with_namespace(self, namespace: str | None) -> "LockedStore":
        return LockedStore(self._store.with_namespace(namespace), self._lock)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store.set(key, value)

    def set_with_ttl(self, key: str, value: Any, ttl: int | timedelta) -> None:
        with self._lock:
            self._store.set_with_ttl(key, value, ttl)

    def get(self, key: str, type_: Any = None) -> Any | None:
        with self._lock:
            return self._store.get(key, type_)

    def remove(self, key: str) -> Any | None:
        with self._lock:
            return self._store.remove(key)

    def contains_key(self, key: str) -> bool:
        with self._lock:
            return self._store.contains_key(key)

    def keys(self) -> list[str]:
        with self._lock:
            return self._store.keys()

    def list_keys(self, prefix: str) -> list[str]:
        with self._lock:
            return self._store.list_keys(prefix)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def clear_prefix(self, prefix: str) -> int:
        with self._lock:
            return self._store.clear_prefix(prefix)

    def purge_expired(self) -> int:
        with self._lock:
            return self._store.purge_expired()

    def save(self) -> None:
        with self._lock:
            self._store.save()

    def reload(self) -> None:
        with self._lock:
            self._store.reload()

    def to_data(self) -> bytes:
        with self._lock:
            return self._store.to_data()

    def close(self) -> None:
        with self._lock:
            self._store.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class AsyncStore:
    """
    Async wrapper around a LockedStore.
    Uses asyncio.to_thread so sink I/O never blocks the event loop.
    """

    def __init__(self, store: Store | LockedStore) -> None:
        self._store = store if isinstance(store, LockedStore) else LockedStore(store)

    def with_namespace(self, namespace: str | None) -> "AsyncStore":
        return AsyncStore(self._store.with_namespace(namespace))

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._store.set, key, value)

    async def set_with_ttl(self, key: str, value: Any, ttl: int | timedelta) -> None:
        await asyncio.to_thread(self._store.set_with_ttl, key, value, ttl)

    async def get(self, key: str, type_: Any = None) -> Any | None:
        return await asyncio.to_thread(self._store.get, key, type_)

    async def remove(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._store.remove, key)

    async def contains_key(self, key: str) -> bool:
        return await asyncio.to_thread(self._store.contains_key, key)

    async def keys(self) -> list[str]:
        return await asyncio.to_thread(self._store.keys)

    async def list_keys(self, prefix: str) -> list[str]:
        return await asyncio.to_thread(self._store.list_keys, prefix)

    async def clear(self) -> None:
        await asyncio.to_thread(self._store.clear)

    async def clear_prefix(self, prefix: str) -> int:
        return await asyncio.to_thread(self._store.clear_prefix, prefix)

    async def purge_expired(self) -> int:
        return await asyncio.to_thread(self._store.purge_expired)

    async def save(self) -> None:
        await asyncio.to_thread(self._store.save)

    async def reload(self) -> None:
        await asyncio.to_thread(self._store.reload)

    async def close(self) -> None:
        await asyncio.to_thread(self._store.close)
