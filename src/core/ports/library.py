"""
Library repository interface.

Async, protocol-based contract the library engine consumes for folder and
asset records. Implementations: in-memory (tests/dev), SQLite.

The engine only reads record shapes, re-parents records and deletes them;
creation of uploaded records goes through reserve_upload().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Final, Protocol
from uuid import UUID

from src.domain.entities import Asset, Folder, SortField, SortOrder


class _Unset(Enum):
    UNSET = "UNSET"


# parent_id/folder_id use None for "library root", so "leave unchanged"
# needs its own marker.
UNSET: Final = _Unset.UNSET
Unset = _Unset


@dataclass(frozen=True)
class AssetFilters:
    """Filters applied when listing assets in a folder."""

    search: str | None = None  # matches filename or alt, case-insensitive
    tags: tuple[str, ...] = ()  # tag names, any-of
    mime_type_prefix: str | None = None  # e.g. "image/"
    sort_by: SortField = "created_at"
    sort_order: SortOrder = "desc"


@dataclass(frozen=True)
class WriteTarget:
    """Write-capable location for the bytes of a reserved asset."""

    key: str  # object-store key
    url: str  # presigned PUT url (remote) or local path marker
    expires_in_seconds: int = 3600


@dataclass(frozen=True)
class ReserveRequest:
    """Metadata for the record created (or replaced) in phase one of an upload."""

    filename: str
    mime_type: str
    size_bytes: int
    width: int | None = None
    height: int | None = None
    folder_id: UUID | None = None
    replace_asset_id: UUID | None = None  # overwrite in place when set
    alt: str | None = None
    tag_ids: tuple[UUID, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Reservation:
    """Result of reserve_upload: where to write, and the record it backs."""

    target: WriteTarget
    asset: Asset
    is_new: bool = True


class LibraryRepoPort(Protocol):
    """Asset repository client."""

    async def list_folders(self, parent_id: UUID | None) -> list[Folder]:
        """Subfolders of parent_id (None = root), in display order."""
        ...

    async def list_assets(
        self,
        folder_id: UUID | None,
        filters: AssetFilters | None = None,
    ) -> list[Asset]:
        """Assets directly inside folder_id (None = root), filtered and sorted."""
        ...

    async def get_folder(self, folder_id: UUID) -> Folder | None:
        """Get folder by ID."""
        ...

    async def get_asset(self, asset_id: UUID) -> Asset | None:
        """Get asset by ID."""
        ...

    async def create_folder(self, name: str, parent_id: UUID | None = None) -> Folder:
        """Create a folder."""
        ...

    async def update_folder(
        self,
        folder_id: UUID,
        *,
        parent_id: UUID | None | Unset = UNSET,
        name: str | None = None,
    ) -> Folder:
        """Re-parent and/or rename a folder. Raises KeyError if missing."""
        ...

    async def delete_folder(self, folder_id: UUID, recursive: bool = False) -> None:
        """
        Delete a folder.

        recursive=True cascades to every descendant folder and asset.
        Raises KeyError if missing.
        """
        ...

    async def update_asset(
        self,
        asset_id: UUID,
        *,
        folder_id: UUID | None | Unset = UNSET,
        tag_ids: list[UUID] | None = None,
    ) -> Asset:
        """Move and/or retag an asset. Raises KeyError if missing."""
        ...

    async def delete_asset(self, asset_id: UUID) -> None:
        """Delete an asset. Raises KeyError if missing."""
        ...

    async def reserve_upload(self, request: ReserveRequest) -> Reservation:
        """Create (or mark for replace) an asset record and issue a write target."""
        ...
