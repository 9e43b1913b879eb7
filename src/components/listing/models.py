"""
Listing component input/output models.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from uuid import UUID

from src.core.ports.library import AssetFilters
from src.domain.entities import Asset, Folder, SelectionKey, key_for

# --- Combined Listing ---


@dataclass(frozen=True)
class CombinedListing:
    """
    Folders-then-assets sequence of the current directory.

    The position of a key in this sequence is what shift-click ranges are
    measured against, so two listings built from equal inputs compare equal.
    """

    rows: tuple[Folder | Asset, ...] = ()
    keys: tuple[SelectionKey, ...] = field(init=False)
    _index: dict[SelectionKey, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        keys = tuple(key_for(row) for row in self.rows)
        object.__setattr__(self, "keys", keys)
        object.__setattr__(self, "_index", {key: i for i, key in enumerate(keys)})

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self) -> Iterator[SelectionKey]:
        return iter(self.keys)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def index_of(self, key: SelectionKey) -> int | None:
        """Position of key, or None when it is not in this listing."""
        return self._index.get(key)

    def key_at(self, index: int) -> SelectionKey:
        return self.keys[index]

    def row_for(self, key: SelectionKey) -> Folder | Asset | None:
        index = self._index.get(key)
        return None if index is None else self.rows[index]

    @property
    def folders(self) -> list[Folder]:
        return [row for row in self.rows if isinstance(row, Folder)]

    @property
    def assets(self) -> list[Asset]:
        return [row for row in self.rows if isinstance(row, Asset)]


# --- Input Models ---


@dataclass(frozen=True)
class LoadListingInput:
    """Input for loading the listing of one directory."""

    folder_id: UUID | None = None  # None = library root
    filters: AssetFilters = field(default_factory=AssetFilters)


# --- Output Models ---


@dataclass(frozen=True)
class ListingOutput:
    """Output from loading a directory listing."""

    listing: CombinedListing
    folder_id: UUID | None = None
    folder_count: int = 0
    asset_count: int = 0
