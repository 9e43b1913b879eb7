"""
Selection component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ToggleMode = Literal["single", "range"]


@dataclass(frozen=True)
class SelectionSnapshot:
    """Read-only view of the selection state."""

    selected: frozenset
    last_index: int | None
    selected_count: int
    is_all_selected: bool
    locked: bool = False


@dataclass(frozen=True)
class ToggleResult:
    """What a toggle did."""

    mode: ToggleMode
    added: int = 0
    removed: int = 0
