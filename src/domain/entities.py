from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
SelectionKind = Literal["folder", "asset"]
SortField = Literal["created_at", "filename", "size_bytes"]
SortOrder = Literal["asc", "desc"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Library Tree ---

class Folder(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str = ""
    parent_id: UUID | None = None  # None = library root
    child_count: int = 0
    asset_count: int = 0
    sort_order: int = 0
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_empty(self) -> bool:
        return self.child_count == 0 and self.asset_count == 0


class Tag(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str


class Asset(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    filename: str
    url: str
    storage_key: str = ""
    mime_type: str
    size_bytes: int
    width: int | None = None
    height: int | None = None
    alt: str | None = None
    folder_id: UUID | None = None  # None = library root
    tags: list[Tag] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


# --- Selection Keys ---
# One row of the combined listing. Folder and asset ids live in separate
# namespaces, so the kind is part of the identity.

@dataclass(frozen=True)
class FolderKey:
    id: UUID

    @property
    def kind(self) -> SelectionKind:
        return "folder"


@dataclass(frozen=True)
class AssetKey:
    id: UUID

    @property
    def kind(self) -> SelectionKind:
        return "asset"


SelectionKey = FolderKey | AssetKey


def key_for(item: Folder | Asset) -> SelectionKey:
    """Selection key addressing a folder or asset record."""
    if isinstance(item, Folder):
        return FolderKey(item.id)
    if isinstance(item, Asset):
        return AssetKey(item.id)
    raise TypeError(f"Not a library item: {type(item)!r}")
