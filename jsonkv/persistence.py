from __future__ import annotations

import logging
from typing import Mapping

from .codec import Codec, JsonCodec
from .entry import Entry
from .errors import IoError
from .sinks import ByteSink, Resource, suffixed

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


class PersistenceController:
    """
    Decides when and how a Store's entry map reaches its byte sink.

    Save order:
      1. encode the full map (nothing on the sink is touched if this fails)
      2. if backups are on and the resource exists, copy it to `<resource>.bak`
         (best-effort: a failed copy is logged and the save continues)
      3. atomically replace the resource through the sink

    A controller without a sink can still encode/decode (`to_data`/`from_data`)
    but raises IoError on `load`/`save`.
    """

    def __init__(
        self,
        sink: ByteSink | None = None,
        resource: Resource | None = None,
        *,
        codec: Codec | None = None,
        auto_save: bool = False,
        backup_enabled: bool = False,
    ) -> None:
        if (sink is None) != (resource is None):
            raise ValueError("sink and resource must be given together")
        self.sink = sink
        self.resource = resource
        self.codec: Codec = codec or JsonCodec()
        self.auto_save = auto_save
        self.backup_enabled = backup_enabled

    @property
    def has_sink(self) -> bool:
        return self.sink is not None

    @property
    def backup_resource(self) -> Resource | None:
        if self.resource is None:
            return None
        return suffixed(self.resource, BACKUP_SUFFIX)

    def load(self) -> dict[str, Entry]:
        sink, resource = self._require_sink()
        data = sink.read_all(resource)
        if data is None:
            logger.debug("KV LOAD: %s does not exist yet, starting empty", resource)
            return {}
        entries = self.codec.decode(data)
        logger.debug("KV LOAD: %s -> %d entries", resource, len(entries))
        return entries

    def save(self, entries: Mapping[str, Entry]) -> None:
        sink, resource = self._require_sink()
        data = self.codec.encode(entries)
        if self.backup_enabled:
            self._backup(sink, resource)
        sink.write_all_atomic(resource, data)
        logger.debug("KV SAVE: wrote %d entries (%d bytes) to %s", len(entries), len(data), resource)

    def after_mutation(self, entries: Mapping[str, Entry]) -> None:
        if self.auto_save and self.has_sink:
            self.save(entries)

    def to_data(self, entries: Mapping[str, Entry]) -> bytes:
        return self.codec.encode(entries)

    def from_data(self, data: bytes | str) -> dict[str, Entry]:
        if isinstance(data, str):
            data = data.encode("utf-8")
        return self.codec.decode(data)

    def _backup(self, sink: ByteSink, resource: Resource) -> None:
        if not sink.exists(resource):
            return
        target = suffixed(resource, BACKUP_SUFFIX)
        try:
            sink.copy(resource, target)
        except IoError as e:
            logger.warning("KV BACKUP: failed to copy %s -> %s, saving anyway: %r", resource, target, e)

    def _require_sink(self) -> tuple[ByteSink, Resource]:
        if self.sink is None or self.resource is None:
            raise IoError("store has no byte sink; use to_data()/from_data() for in-memory stores")
        return self.sink, self.resource
