from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, Field, RootModel


class Entry(BaseModel):
    value: Any
    # strict: a bool or numeric string here is a corrupt record, not a timestamp
    expires_at: int | None = Field(default=None, strict=True)

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class EntryTable(RootModel[dict[str, Entry]]):
    """
    Mirrors the persisted document schema exactly:
      {
        "<key>": { "value": <payload>, "expires_at": <int | null> },
        ...
      }
    """

    @classmethod
    def from_disk_doc(cls, doc: Mapping[str, Any]) -> "EntryTable":
        return cls.model_validate(dict(doc))

    def to_disk_doc(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
