"""
Folder tree helpers: cycle checks and descendant lookup.

Pure functions over a child -> parent map; no repository or UI state.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from uuid import UUID

from src.domain.errors import CycleError


def ancestor_chain(
    folder_id: UUID,
    parent_of: Mapping[UUID, UUID | None],
) -> list[UUID]:
    """
    Ancestors of folder_id, nearest first, stopping at the root.

    Stops early if the map is missing a link or already contains a loop.
    """
    chain: list[UUID] = []
    seen = {folder_id}
    current = parent_of.get(folder_id)
    while current is not None and current not in seen:
        chain.append(current)
        seen.add(current)
        current = parent_of.get(current)
    return chain


def ensure_move_allowed(
    target_folder_id: UUID | None,
    moving_folder_ids: Collection[UUID],
    parent_of: Mapping[UUID, UUID | None],
) -> None:
    """
    Reject a move that would make a folder its own ancestor.

    A folder may not be moved into itself, nor into any folder whose ancestor
    chain contains it. Moving to the root is always allowed.

    Raises:
        CycleError: naming the target and the first offending folder.
    """
    if target_folder_id is None:
        return
    moving = set(moving_folder_ids)
    if target_folder_id in moving:
        raise CycleError(target_folder_id, target_folder_id)
    for ancestor in ancestor_chain(target_folder_id, parent_of):
        if ancestor in moving:
            raise CycleError(target_folder_id, ancestor)


def descendants(
    folder_id: UUID,
    parent_of: Mapping[UUID, UUID | None],
) -> set[UUID]:
    """All folders below folder_id in the given map."""
    children: dict[UUID, list[UUID]] = {}
    for child, parent in parent_of.items():
        if parent is not None:
            children.setdefault(parent, []).append(child)

    found: set[UUID] = set()
    stack = list(children.get(folder_id, []))
    while stack:
        current = stack.pop()
        if current in found or current == folder_id:
            continue
        found.add(current)
        stack.extend(children.get(current, []))
    return found
