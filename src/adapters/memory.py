"""
In-memory adapters for the library ports.

Used by tests and local development. Records live in dicts; folder and asset
counts are derived on read so they never drift from the tree.
"""

from __future__ import annotations

import builtins
from typing import Any
from uuid import UUID, uuid4

from src.adapters.clock import SystemClock
from src.core.ports.library import (
    UNSET,
    AssetFilters,
    Reservation,
    ReserveRequest,
    Unset,
    WriteTarget,
)
from src.core.ports.storage import (
    KeyNotFoundError,
    SizeMismatchError,
    StoredObject,
)
from src.core.ports.time import TimePort
from src.domain.entities import Asset, Folder, Tag
from src.domain.errors import NotEmptyError
from src.domain.folder_tree import descendants
from src.domain.naming import generate_storage_key, slugify


def filter_assets(assets: builtins.list[Asset], filters: AssetFilters | None) -> builtins.list[Asset]:
    """Apply search/tag/mime filters and ordering to a list of assets."""
    filters = filters or AssetFilters()
    result = assets

    if filters.search:
        needle = filters.search.lower()
        result = [
            a
            for a in result
            if needle in a.filename.lower() or (a.alt is not None and needle in a.alt.lower())
        ]
    if filters.tags:
        wanted = set(filters.tags)
        result = [a for a in result if wanted.intersection(t.name for t in a.tags)]
    if filters.mime_type_prefix:
        prefix = filters.mime_type_prefix
        result = [a for a in result if a.mime_type.startswith(prefix)]

    reverse = filters.sort_order == "desc"
    if filters.sort_by == "filename":
        return sorted(result, key=lambda a: a.filename.lower(), reverse=reverse)
    if filters.sort_by == "size_bytes":
        return sorted(result, key=lambda a: a.size_bytes, reverse=reverse)
    return sorted(result, key=lambda a: a.created_at, reverse=reverse)


class InMemoryLibraryRepo:
    """In-memory LibraryRepoPort for testing/dev."""

    def __init__(
        self,
        *,
        clock: TimePort | None = None,
        public_base_url: str = "memory://",
    ) -> None:
        self._folders: dict[UUID, Folder] = {}
        self._assets: dict[UUID, Asset] = {}
        self._tags: dict[UUID, Tag] = {}
        self._clock = clock or SystemClock()
        self._public_base_url = public_base_url.rstrip("/")

    # --- Seeding (sync; tests and dev only) ---

    def add_folder(self, folder: Folder) -> Folder:
        self._folders[folder.id] = folder
        return folder

    def add_asset(self, asset: Asset) -> Asset:
        for tag in asset.tags:
            self._tags.setdefault(tag.id, tag)
        self._assets[asset.id] = asset
        return asset

    def add_tag(self, tag: Tag) -> Tag:
        self._tags[tag.id] = tag
        return tag

    # --- Reads ---

    async def list_folders(self, parent_id: UUID | None) -> builtins.list[Folder]:
        folders = [f for f in self._folders.values() if f.parent_id == parent_id]
        folders.sort(key=lambda f: (f.sort_order, f.name.lower()))
        return [self._with_counts(f) for f in folders]

    async def list_assets(
        self,
        folder_id: UUID | None,
        filters: AssetFilters | None = None,
    ) -> builtins.list[Asset]:
        assets = [a for a in self._assets.values() if a.folder_id == folder_id]
        return filter_assets(assets, filters)

    async def get_folder(self, folder_id: UUID) -> Folder | None:
        folder = self._folders.get(folder_id)
        return self._with_counts(folder) if folder else None

    async def get_asset(self, asset_id: UUID) -> Asset | None:
        return self._assets.get(asset_id)

    # --- Writes ---

    async def create_folder(self, name: str, parent_id: UUID | None = None) -> Folder:
        if parent_id is not None and parent_id not in self._folders:
            raise KeyError(f"Parent folder {parent_id} not found")
        folder = Folder(
            name=name,
            slug=slugify(name),
            parent_id=parent_id,
            created_at=self._clock.now_utc(),
        )
        self._folders[folder.id] = folder
        return self._with_counts(folder)

    async def update_folder(
        self,
        folder_id: UUID,
        *,
        parent_id: UUID | None | Unset = UNSET,
        name: str | None = None,
    ) -> Folder:
        folder = self._folders[folder_id]
        changes: dict[str, Any] = {}
        if parent_id is not UNSET:
            if parent_id is not None and parent_id not in self._folders:
                raise KeyError(f"Parent folder {parent_id} not found")
            changes["parent_id"] = parent_id
        if name is not None:
            changes["name"] = name
            changes["slug"] = slugify(name)
        updated = folder.model_copy(update=changes)
        self._folders[folder_id] = updated
        return self._with_counts(updated)

    async def delete_folder(self, folder_id: UUID, recursive: bool = False) -> None:
        folder = self._folders[folder_id]
        parent_of = {f.id: f.parent_id for f in self._folders.values()}
        doomed = {folder_id} | descendants(folder_id, parent_of)

        if not recursive and not self._with_counts(folder).is_empty:
            raise NotEmptyError([folder_id])

        for asset_id in [a.id for a in self._assets.values() if a.folder_id in doomed]:
            del self._assets[asset_id]
        for fid in doomed:
            del self._folders[fid]

    async def update_asset(
        self,
        asset_id: UUID,
        *,
        folder_id: UUID | None | Unset = UNSET,
        tag_ids: builtins.list[UUID] | None = None,
    ) -> Asset:
        asset = self._assets[asset_id]
        changes: dict[str, Any] = {}
        if folder_id is not UNSET:
            if folder_id is not None and folder_id not in self._folders:
                raise KeyError(f"Folder {folder_id} not found")
            changes["folder_id"] = folder_id
        if tag_ids is not None:
            changes["tags"] = [self._tags[tid] for tid in tag_ids]
        updated = asset.model_copy(update=changes)
        self._assets[asset_id] = updated
        return updated

    async def delete_asset(self, asset_id: UUID) -> None:
        del self._assets[asset_id]

    async def reserve_upload(self, request: ReserveRequest) -> Reservation:
        now = self._clock.now_utc()
        key = generate_storage_key(request.filename, now)
        target = WriteTarget(key=key, url=f"{self._public_base_url}/{key}")
        fields: dict[str, Any] = {
            "filename": request.filename,
            "url": target.url,
            "storage_key": key,
            "mime_type": request.mime_type,
            "size_bytes": request.size_bytes,
            "width": request.width,
            "height": request.height,
        }

        if request.replace_asset_id is not None:
            existing = self._assets[request.replace_asset_id]
            asset = existing.model_copy(update=fields)
            self._assets[asset.id] = asset
            return Reservation(target=target, asset=asset, is_new=False)

        if request.folder_id is not None and request.folder_id not in self._folders:
            raise KeyError(f"Folder {request.folder_id} not found")
        asset = Asset(
            id=uuid4(),
            alt=request.alt,
            folder_id=request.folder_id,
            tags=[self._tags[tid] for tid in request.tag_ids],
            created_at=now,
            **fields,
        )
        self._assets[asset.id] = asset
        return Reservation(target=target, asset=asset, is_new=True)

    def _with_counts(self, folder: Folder) -> Folder:
        return folder.model_copy(
            update={
                "child_count": sum(1 for f in self._folders.values() if f.parent_id == folder.id),
                "asset_count": sum(1 for a in self._assets.values() if a.folder_id == folder.id),
            }
        )


class InMemoryObjectStore:
    """In-memory TransferPort; keeps written bytes by key."""

    def __init__(self) -> None:
        self.objects: dict[str, StoredObject] = {}
        self._data: dict[str, bytes] = {}

    async def write(
        self,
        target: WriteTarget,
        data: bytes,
        mime_type: str,
        size_bytes: int,
    ) -> StoredObject:
        if len(data) != size_bytes:
            raise SizeMismatchError(size_bytes, len(data))
        stored = StoredObject(key=target.key, size_bytes=size_bytes, content_type=mime_type)
        self._data[target.key] = data
        self.objects[target.key] = stored
        return stored

    def get(self, key: str) -> bytes:
        if key not in self._data:
            raise KeyNotFoundError(key)
        return self._data[key]

    def exists(self, key: str) -> bool:
        return key in self._data


class InMemoryWatermarkSettingsRepo:
    """In-memory WatermarkSettingsRepoPort."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values = dict(values) if values else None
        self.save_count = 0

    def get(self) -> dict[str, Any] | None:
        return dict(self._values) if self._values is not None else None

    def save(self, values: dict[str, Any]) -> None:
        self._values = dict(values)
        self.save_count += 1
