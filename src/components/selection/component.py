"""
Selection component - Multi-select over the combined listing.

Supports plain toggle, shift-click range selection, select-all and clear.

Invariants:
- A shift-click adds the inclusive range between the anchor and the clicked
  row; it never removes rows that were already selected
- A stale anchor (listing shrank) is treated as absent
- Edits are rejected while a bulk operation holds the lock
"""

from __future__ import annotations

from uuid import UUID

from src.components.listing import CombinedListing
from src.domain.entities import AssetKey, FolderKey, SelectionKey
from src.domain.errors import SelectionLockedError

from .models import SelectionSnapshot, ToggleResult


class SelectionEngine:
    """Selected keys plus the range anchor, bound to the current listing."""

    def __init__(self, listing: CombinedListing | None = None) -> None:
        self._listing = listing or CombinedListing()
        self._selected: set[SelectionKey] = set()
        self._last_index: int | None = None
        self._locked = False

    # --- Read side ---

    @property
    def listing(self) -> CombinedListing:
        return self._listing

    @property
    def selected(self) -> frozenset[SelectionKey]:
        return frozenset(self._selected)

    @property
    def last_index(self) -> int | None:
        return self._last_index

    @property
    def selected_count(self) -> int:
        return len(self._selected)

    @property
    def is_all_selected(self) -> bool:
        """Every listed row is selected; keys outside the listing do not count."""
        return len(self._listing) > 0 and all(key in self._selected for key in self._listing)

    @property
    def locked(self) -> bool:
        return self._locked

    def is_selected(self, key: SelectionKey) -> bool:
        return key in self._selected

    def selected_keys(self) -> list[SelectionKey]:
        """Selected keys in listing order."""
        return [key for key in self._listing if key in self._selected]

    @property
    def selected_folder_ids(self) -> list[UUID]:
        return [key.id for key in self.selected_keys() if isinstance(key, FolderKey)]

    @property
    def selected_asset_ids(self) -> list[UUID]:
        return [key.id for key in self.selected_keys() if isinstance(key, AssetKey)]

    def snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot(
            selected=frozenset(self._selected),
            last_index=self._last_index,
            selected_count=len(self._selected),
            is_all_selected=self.is_all_selected,
            locked=self._locked,
        )

    # --- Write side ---

    def toggle(self, key: SelectionKey, shift_held: bool = False) -> ToggleResult:
        """
        Toggle one row, or add a range when shift is held.

        Range selection needs an anchor that still points inside the listing
        and a key that resolves in it; otherwise it degrades to a single
        toggle.
        """
        self._ensure_unlocked()
        index = self._listing.index_of(key)
        anchor = self._valid_anchor()

        if shift_held and anchor is not None and index is not None:
            start, end = min(anchor, index), max(anchor, index)
            before = len(self._selected)
            self._selected.update(self._listing.keys[start : end + 1])
            self._last_index = index
            return ToggleResult(mode="range", added=len(self._selected) - before)

        if index is not None:
            self._last_index = index
        if key in self._selected:
            self._selected.discard(key)
            return ToggleResult(mode="single", removed=1)
        self._selected.add(key)
        return ToggleResult(mode="single", added=1)

    def select_all(self) -> None:
        self._ensure_unlocked()
        self._selected = set(self._listing.keys)
        self._last_index = None

    def clear(self) -> None:
        self._ensure_unlocked()
        self._selected = set()
        self._last_index = None

    def toggle_select_all(self) -> None:
        """Select everything, or clear when everything is already selected."""
        if self.is_all_selected:
            self.clear()
        else:
            self.select_all()

    def update_listing(self, listing: CombinedListing) -> None:
        """
        Rebind to a re-rendered listing.

        Keys no longer present are dropped. The anchor is left alone; toggle()
        ignores it once it falls out of range.
        """
        self._listing = listing
        self._selected = {key for key in self._selected if key in listing}

    def discard(self, keys: set[SelectionKey] | frozenset[SelectionKey]) -> None:
        """Drop keys from the selection (used after bulk operations)."""
        self._selected -= set(keys)

    # --- Bulk operation lock ---

    def lock(self) -> None:
        self._locked = True

    def unlock(self) -> None:
        self._locked = False

    def _ensure_unlocked(self) -> None:
        if self._locked:
            raise SelectionLockedError("Selection is locked while a bulk operation runs")

    def _valid_anchor(self) -> int | None:
        if self._last_index is None:
            return None
        if 0 <= self._last_index < len(self._listing):
            return self._last_index
        return None
