"""
Bulk component - Move and delete over a heterogeneous selection.

Issues one repository call per selected item, concurrently, and reports the
tally. No rollback and no retry.

Invariants:
- CycleError / NotEmptyError are raised before any mutation is attempted
- Per-item failures never abort the batch; they are collected and reported
- Only one bulk operation runs at a time per coordinator (re-entrancy guard)
- The bound selection is locked while an operation runs
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Sequence
from uuid import UUID

from src.components.selection import SelectionEngine
from src.core.ports.library import LibraryRepoPort
from src.domain.entities import AssetKey, Folder, FolderKey, SelectionKey
from src.domain.errors import (
    BulkOperationInProgressError,
    FolderNotFoundError,
    NotEmptyError,
)
from src.domain.folder_tree import ensure_move_allowed

from .models import (
    BulkOperation,
    BulkResult,
    BulkState,
    DeleteInput,
    ItemFailure,
    MoveInput,
)

logger = logging.getLogger(__name__)


# --- Preconditions ---


async def resolve_parent_map(
    repo: LibraryRepoPort,
    folder_id: UUID,
) -> dict[UUID, UUID | None]:
    """
    Walk from folder_id up to the root, returning child -> parent links.

    Raises:
        FolderNotFoundError: If folder_id itself does not exist.
    """
    parent_of: dict[UUID, UUID | None] = {}
    current: UUID | None = folder_id
    while current is not None and current not in parent_of:
        folder = await repo.get_folder(current)
        if folder is None:
            if current == folder_id:
                raise FolderNotFoundError(folder_id)
            # Dangling parent link; the chain ends here.
            break
        parent_of[current] = folder.parent_id
        current = folder.parent_id
    return parent_of


async def find_non_empty(
    repo: LibraryRepoPort,
    folder_ids: Sequence[UUID],
) -> list[UUID]:
    """Folders among folder_ids that still hold subfolders or assets."""
    folders = await asyncio.gather(*(repo.get_folder(fid) for fid in folder_ids))
    return [f.id for f in folders if isinstance(f, Folder) and not f.is_empty]


# --- Entry points (stateless) ---


async def run_move(inp: MoveInput, *, repo: LibraryRepoPort) -> BulkResult:
    """
    Move folders and assets under target_folder_id.

    Raises:
        CycleError: If the target is a moving folder or one of its descendants.
        FolderNotFoundError: If the target folder does not exist.
    """
    if inp.target_folder_id is not None:
        parent_of = await resolve_parent_map(repo, inp.target_folder_id)
        ensure_move_allowed(inp.target_folder_id, inp.folder_ids, parent_of)

    target = inp.target_folder_id
    calls: list[tuple[SelectionKey, Awaitable[object]]] = []
    for folder_id in inp.folder_ids:
        calls.append((FolderKey(folder_id), repo.update_folder(folder_id, parent_id=target)))
    for asset_id in inp.asset_ids:
        calls.append((AssetKey(asset_id), repo.update_asset(asset_id, folder_id=target)))

    return await _gather_outcomes("move", calls, target_folder_id=target)


async def run_delete(inp: DeleteInput, *, repo: LibraryRepoPort) -> BulkResult:
    """
    Delete folders and assets.

    Empty folders are deleted directly. Folders with content are only deleted
    when the caller confirmed a recursive delete, which cascades in the
    repository.

    Raises:
        NotEmptyError: If recursive is False and any folder has content.
    """
    if not inp.recursive and inp.folder_ids:
        non_empty = await find_non_empty(repo, inp.folder_ids)
        if non_empty:
            raise NotEmptyError(non_empty)

    calls: list[tuple[SelectionKey, Awaitable[object]]] = []
    for folder_id in inp.folder_ids:
        calls.append(
            (FolderKey(folder_id), repo.delete_folder(folder_id, recursive=inp.recursive))
        )
    for asset_id in inp.asset_ids:
        calls.append((AssetKey(asset_id), repo.delete_asset(asset_id)))

    return await _gather_outcomes("delete", calls, recursive=inp.recursive)


async def _gather_outcomes(
    operation: BulkOperation,
    calls: list[tuple[SelectionKey, Awaitable[object]]],
    *,
    target_folder_id: UUID | None = None,
    recursive: bool = False,
) -> BulkResult:
    started = time.perf_counter()
    outcomes = await asyncio.gather(*(call for _, call in calls), return_exceptions=True)

    succeeded: list[SelectionKey] = []
    failures: list[ItemFailure] = []
    for (key, _), outcome in zip(calls, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            logger.warning("Bulk %s failed for %s %s: %s", operation, key.kind, key.id, outcome)
            failures.append(ItemFailure(key=key, message=_describe(outcome)))
        else:
            succeeded.append(key)

    result = BulkResult(
        operation=operation,
        succeeded_keys=tuple(succeeded),
        failures=tuple(failures),
        target_folder_id=target_folder_id,
        recursive=recursive,
        duration_ms=(time.perf_counter() - started) * 1000,
    )
    logger.info(
        "Bulk %s finished: %d succeeded, %d failed",
        operation,
        result.succeeded,
        result.failed,
    )
    return result


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.CancelledError):
        return "cancelled"
    if isinstance(exc, KeyError):
        return f"not found: {exc.args[0] if exc.args else ''}"
    return str(exc) or type(exc).__name__


# --- Coordinator ---


class BulkMutationCoordinator:
    """
    Stateful front for run_move/run_delete.

    Owns the re-entrancy guard and the state machine, and keeps the bound
    selection in sync: locked while running, succeeded keys dropped after.
    """

    def __init__(
        self,
        repo: LibraryRepoPort,
        selection: SelectionEngine | None = None,
    ) -> None:
        self._repo = repo
        self._selection = selection
        self._state = BulkState.IDLE
        self._last_result: BulkResult | None = None

    @property
    def state(self) -> BulkState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is BulkState.RUNNING

    @property
    def last_result(self) -> BulkResult | None:
        return self._last_result

    @property
    def last_status(self) -> BulkState | None:
        """SUCCESS or PARTIAL_FAILURE of the last completed operation."""
        return None if self._last_result is None else self._last_result.status

    async def move(
        self,
        target_folder_id: UUID | None,
        *,
        folder_ids: Sequence[UUID] | None = None,
        asset_ids: Sequence[UUID] | None = None,
    ) -> BulkResult:
        """Move the selection (or the given ids) under target_folder_id."""
        self._begin()
        try:
            folders, assets = self._resolve_ids(folder_ids, asset_ids)
            inp = MoveInput(
                target_folder_id=target_folder_id,
                folder_ids=folders,
                asset_ids=assets,
            )
            result = await run_move(inp, repo=self._repo)
        except BaseException:
            self._abort()
            raise
        return self._finish(result)

    async def delete(
        self,
        *,
        recursive: bool = False,
        folder_ids: Sequence[UUID] | None = None,
        asset_ids: Sequence[UUID] | None = None,
    ) -> BulkResult:
        """Delete the selection (or the given ids)."""
        self._begin()
        try:
            folders, assets = self._resolve_ids(folder_ids, asset_ids)
            inp = DeleteInput(folder_ids=folders, asset_ids=assets, recursive=recursive)
            result = await run_delete(inp, repo=self._repo)
        except BaseException:
            self._abort()
            raise
        return self._finish(result)

    def _resolve_ids(
        self,
        folder_ids: Sequence[UUID] | None,
        asset_ids: Sequence[UUID] | None,
    ) -> tuple[tuple[UUID, ...], tuple[UUID, ...]]:
        if folder_ids is None and asset_ids is None and self._selection is not None:
            return (
                tuple(self._selection.selected_folder_ids),
                tuple(self._selection.selected_asset_ids),
            )
        return tuple(folder_ids or ()), tuple(asset_ids or ())

    def _begin(self) -> None:
        # Checked and set before the first await, so a second call scheduled
        # on the same loop always sees RUNNING.
        if self._state is BulkState.RUNNING:
            raise BulkOperationInProgressError("A bulk operation is already running")
        self._state = BulkState.RUNNING
        if self._selection is not None:
            self._selection.lock()

    def _abort(self) -> None:
        self._state = BulkState.IDLE
        if self._selection is not None:
            self._selection.unlock()

    def _finish(self, result: BulkResult) -> BulkResult:
        self._last_result = result
        if self._selection is not None:
            self._selection.unlock()
            self._selection.discard(set(result.succeeded_keys))
        self._state = BulkState.IDLE
        return result
