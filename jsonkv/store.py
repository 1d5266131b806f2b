from __future__ import annotations

import copy
import json
import logging
from datetime import timedelta
from functools import lru_cache
from typing import Any, Iterator

from pydantic import TypeAdapter, ValidationError

from .clock import Clock, SystemClock
from .codec import Codec, JsonCodec, to_payload
from .entry import Entry
from .errors import CodecError, JsonKVError
from .persistence import PersistenceController
from .settings import Settings, get_settings
from .sinks import ByteSink, FileSink, Resource

logger = logging.getLogger(__name__)

NAMESPACE_SEPARATOR = ":"


def normalize_namespace(namespace: str | None) -> str:
    if not namespace:
        return ""
    if namespace.endswith(NAMESPACE_SEPARATOR):
        return namespace
    return namespace + NAMESPACE_SEPARATOR


@lru_cache(maxsize=256)
def _adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


class Store:
    """
    Key-value map with optional per-key expiration and a pluggable persistence policy.

    Expiration is lazy: an entry whose `expires_at <= now` is invisible to every
    read (`get`, `keys`, `contains_key`, `list_keys`, `len`) but stays in the map
    until `purge_expired()` or a write removes it.

    Namespaced views (`with_namespace`) share the entry map and the persistence
    controller of the store they were created from.
    """

    def __init__(
        self,
        entries: dict[str, Entry] | None = None,
        *,
        namespace: str | None = None,
        persistence: PersistenceController | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._entries: dict[str, Entry] = entries if entries is not None else {}
        self._namespace = normalize_namespace(namespace)
        self._persistence = persistence or PersistenceController()
        self._clock: Clock = clock or SystemClock()

    # construction

    @classmethod
    def new(cls, *, codec: Codec | None = None, clock: Clock | None = None) -> "Store":
        return cls(persistence=PersistenceController(codec=codec), clock=clock)

    @classmethod
    def from_data(cls, data: bytes | str, *, codec: Codec | None = None, clock: Clock | None = None) -> "Store":
        persistence = PersistenceController(codec=codec)
        return cls(persistence.from_data(data), persistence=persistence, clock=clock)

    @classmethod
    def open(
        cls,
        resource: Resource,
        *,
        sink: ByteSink | None = None,
        codec: Codec | None = None,
        clock: Clock | None = None,
        auto_save: bool | None = None,
        backup: bool | None = None,
        settings: Settings | None = None,
    ) -> "Store":
        """
        Load `resource` from `sink` (the filesystem by default).

        A missing resource yields an empty store. Flags left as None fall back
        to `jsonkv.settings.get_settings()`.
        """
        settings = settings or get_settings()
        persistence = PersistenceController(
            sink or FileSink(),
            resource,
            codec=codec or JsonCodec(indent=settings.indent, sort_keys=settings.sort_keys),
            auto_save=settings.auto_save if auto_save is None else auto_save,
            backup_enabled=settings.backup if backup is None else backup,
        )
        return cls(persistence.load(), persistence=persistence, clock=clock)

    def with_auto_save(self, enabled: bool = True) -> "Store":
        self._persistence.auto_save = enabled
        return self

    def with_backup(self, enabled: bool = True) -> "Store":
        self._persistence.backup_enabled = enabled
        return self

    def with_namespace(self, namespace: str | None) -> "Store":
        return Store(
            self._entries,
            namespace=namespace,
            persistence=self._persistence,
            clock=self._clock,
        )

    @property
    def namespace(self) -> str | None:
        return self._namespace[: -len(NAMESPACE_SEPARATOR)] if self._namespace else None

    @property
    def persistence(self) -> PersistenceController:
        return self._persistence

    # writes

    def set(self, key: str, value: Any) -> None:
        self._put(key, value, expires_at=None)

    def set_with_ttl(self, key: str, value: Any, ttl: int | timedelta) -> None:
        """
        Store `value` until `now() + ttl`.

        `ttl` is whole seconds; a timedelta is truncated to whole seconds.
        Fractional or negative second counts raise ValueError.
        """
        if isinstance(ttl, timedelta):
            seconds = int(ttl.total_seconds())
        elif isinstance(ttl, float) and not ttl.is_integer():
            raise ValueError(f"ttl must be a whole number of seconds, got {ttl!r}")
        else:
            seconds = int(ttl)
        if seconds < 0:
            raise ValueError(f"ttl must be >= 0 seconds, got {seconds}")
        self._put(key, value, expires_at=self._clock.now() + seconds)

    def remove(self, key: str) -> Any | None:
        entry = self._entries.pop(self._key(key), None)
        if entry is None:
            return None
        self._changed()
        if entry.is_expired(self._clock.now()):
            return None
        return entry.value

    def clear(self) -> None:
        """Remove every entry, across all namespaces."""
        self._entries.clear()
        self._changed()

    def clear_prefix(self, prefix: str) -> int:
        full_prefix = self._key(prefix)
        doomed = [k for k in self._entries if k.startswith(full_prefix)]
        for k in doomed:
            del self._entries[k]
        if doomed:
            self._changed()
        return len(doomed)

    def purge_expired(self) -> int:
        now = self._clock.now()
        doomed = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in doomed:
            del self._entries[k]
        if doomed:
            logger.debug("KV PURGE: dropped %d expired entries", len(doomed))
            self._changed()
        return len(doomed)

    # reads

    def get(self, key: str, type_: Any = None) -> Any | None:
        """
        Return the stored value, or None if the key is missing or expired.

        With `type_`, the payload is validated strictly into that shape (e.g.
        `int`, `list[str]`, a pydantic model); a mismatch such as `"5"` read as
        `int` raises CodecError instead of being coerced.
        """
        entry = self._entries.get(self._key(key))
        if entry is None or entry.is_expired(self._clock.now()):
            return None
        if type_ is None:
            return copy.deepcopy(entry.value)
        try:
            return _adapter(type_).validate_json(json.dumps(entry.value), strict=True)
        except ValidationError as e:
            raise CodecError(f"value for {key!r} does not match {type_!r}: {e}") from e

    def contains_key(self, key: str) -> bool:
        entry = self._entries.get(self._key(key))
        return entry is not None and not entry.is_expired(self._clock.now())

    def keys(self) -> list[str]:
        now = self._clock.now()
        return [
            self._strip(k)
            for k, e in self._entries.items()
            if k.startswith(self._namespace) and not e.is_expired(now)
        ]

    def list_keys(self, prefix: str) -> list[str]:
        return [k for k in self.keys() if k.startswith(prefix)]

    def is_empty(self) -> bool:
        return len(self) == 0

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains_key(key)

    def __len__(self) -> int:
        return len(self.keys())

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __repr__(self) -> str:
        return f"Store(namespace={self.namespace!r}, resource={self._persistence.resource!r}, entries={len(self._entries)})"

    # persistence

    def save(self) -> None:
        self._persistence.save(self._entries)

    def reload(self) -> None:
        """Replace the in-memory map with the sink's contents; untouched if loading fails."""
        entries = self._persistence.load()
        self._entries.clear()
        self._entries.update(entries)

    def to_data(self) -> bytes:
        return self._persistence.to_data(self._entries)

    def close(self) -> None:
        """Final best-effort save when auto-save is on; failures are logged, not raised."""
        if not (self._persistence.auto_save and self._persistence.has_sink):
            return
        try:
            self.save()
        except JsonKVError as e:
            logger.warning("KV CLOSE: final save to %s failed: %r", self._persistence.resource, e)

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # internals

    def _put(self, key: str, value: Any, *, expires_at: int | None) -> None:
        self._entries[self._key(key)] = Entry(value=to_payload(value), expires_at=expires_at)
        self._changed()

    def _changed(self) -> None:
        self._persistence.after_mutation(self._entries)

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def _strip(self, full_key: str) -> str:
        return full_key[len(self._namespace):]
