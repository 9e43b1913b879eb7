"""
Media library error taxonomy.

Structural errors (CycleError, NotEmptyError) are raised before any mutation
is attempted. Per-item batch failures are collected into a BulkResult and only
become PartialBatchFailure when the caller asks for it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from src.components.bulk.models import BulkResult
    from src.core.ports.library import Reservation


@dataclass(frozen=True)
class ValidationIssue:
    """Validation error with actionable message."""

    code: str
    message: str
    field: str = "file"


class LibraryError(Exception):
    """Base class for media library errors."""


# --- Structural ---


class CycleError(LibraryError):
    """Raised when a move would make a folder its own ancestor."""

    def __init__(self, target_folder_id: UUID, offending_folder_id: UUID) -> None:
        self.target_folder_id = target_folder_id
        self.offending_folder_id = offending_folder_id
        if target_folder_id == offending_folder_id:
            msg = f"Cannot move folder {offending_folder_id} into itself"
        else:
            msg = (
                f"Cannot move folder {offending_folder_id} into its descendant "
                f"{target_folder_id}"
            )
        super().__init__(msg)


class NotEmptyError(LibraryError):
    """Raised when non-recursive delete hits folders that still have content."""

    def __init__(self, folder_ids: Iterable[UUID]) -> None:
        self.folder_ids = list(folder_ids)
        super().__init__(
            f"{len(self.folder_ids)} folder(s) are not empty; "
            "confirm a recursive delete to remove their content"
        )


# --- Selection / Bulk ---


class SelectionLockedError(LibraryError):
    """Raised when the selection is edited while a bulk operation runs."""


class BulkOperationInProgressError(LibraryError):
    """Raised when a bulk operation is started while another one is running."""


class PartialBatchFailure(LibraryError):
    """N of M items in a bulk operation failed."""

    def __init__(self, result: BulkResult) -> None:
        self.result = result
        super().__init__(
            f"{result.operation}: {result.failed} of {result.total} item(s) failed, "
            f"{result.succeeded} succeeded"
        )


# --- Derivation ---


class DecodeError(LibraryError):
    """Raised when the source image cannot be decoded."""


class InvalidCropError(LibraryError):
    """Raised when the crop rectangle lies outside the drawable canvas."""

    def __init__(self, message: str, *, bounds: tuple[int, int] | None = None) -> None:
        self.bounds = bounds
        super().__init__(message)


# --- Upload ---


class UploadValidationError(LibraryError):
    """Raised when an upload request fails validation before reserving."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))


class ReserveError(LibraryError):
    """Raised when the metadata record could not be reserved (nothing written)."""


class PartialUploadError(LibraryError):
    """
    Reserve succeeded, transfer failed.

    The metadata record exists but points at unwritten bytes. Retry with
    UploadCoordinator.retry_transfer(asset_id) or transfer() with the carried
    reservation; do not reserve again.
    """

    def __init__(self, reservation: Reservation, cause: BaseException | Any) -> None:
        self.reservation = reservation
        self.cause = cause
        super().__init__(
            f"Asset {reservation.asset.id} reserved but transfer failed: {cause}"
        )

    @property
    def asset_id(self) -> UUID:
        return self.reservation.asset.id


class FolderNotFoundError(LibraryError):
    """Raised when a move targets a folder that does not exist."""

    def __init__(self, folder_id: UUID) -> None:
        self.folder_id = folder_id
        super().__init__(f"Folder {folder_id} not found")


class AssetNotFoundError(LibraryError):
    """Raised when an edit targets an asset that does not exist."""

    def __init__(self, asset_id: UUID) -> None:
        self.asset_id = asset_id
        super().__init__(f"Asset {asset_id} not found")
