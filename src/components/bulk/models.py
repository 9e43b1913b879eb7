"""
Bulk component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal
from uuid import UUID

from src.domain.entities import SelectionKey
from src.domain.errors import PartialBatchFailure

BulkOperation = Literal["move", "delete"]


class BulkState(str, Enum):
    """
    Bulk operation state machine.

    IDLE -> RUNNING -> SUCCESS | PARTIAL_FAILURE -> IDLE
    """

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"


# --- Input Models ---


@dataclass(frozen=True)
class MoveInput:
    """Input for moving folders and assets under a new parent."""

    target_folder_id: UUID | None  # None = library root
    folder_ids: tuple[UUID, ...] = ()
    asset_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class DeleteInput:
    """Input for deleting folders and assets."""

    folder_ids: tuple[UUID, ...] = ()
    asset_ids: tuple[UUID, ...] = ()
    recursive: bool = False  # caller confirmed cascading delete


# --- Output Models ---


@dataclass(frozen=True)
class ItemFailure:
    """One item of a batch that did not go through."""

    key: SelectionKey
    message: str


@dataclass(frozen=True)
class BulkResult:
    """Per-item tally of a bulk operation. No rollback is ever attempted."""

    operation: BulkOperation
    succeeded_keys: tuple[SelectionKey, ...] = ()
    failures: tuple[ItemFailure, ...] = ()
    target_folder_id: UUID | None = None
    recursive: bool = False
    duration_ms: float = field(default=0.0, compare=False)

    @property
    def succeeded(self) -> int:
        return len(self.succeeded_keys)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def status(self) -> BulkState:
        return BulkState.PARTIAL_FAILURE if self.failures else BulkState.SUCCESS

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def failed_keys(self) -> tuple[SelectionKey, ...]:
        return tuple(failure.key for failure in self.failures)

    def summary(self) -> dict[str, int]:
        return {"succeeded": self.succeeded, "failed": self.failed}

    def raise_for_failures(self) -> BulkResult:
        """Raise PartialBatchFailure if any item failed; return self otherwise."""
        if self.failures:
            raise PartialBatchFailure(self)
        return self
