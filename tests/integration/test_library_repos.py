"""
LibraryRepoPort contract tests, run against the in-memory and SQLite adapters.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

import pytest

from src.adapters.clock import FrozenClock
from src.adapters.memory import InMemoryLibraryRepo
from src.core.ports.library import AssetFilters, LibraryRepoPort, ReserveRequest
from src.domain.entities import Asset, Tag
from src.domain.errors import NotEmptyError


@pytest.fixture(params=["memory", "sqlite"])
def repo(request: pytest.FixtureRequest, clock: FrozenClock) -> LibraryRepoPort:
    if request.param == "memory":
        return InMemoryLibraryRepo(clock=clock, public_base_url="/media")
    return request.getfixturevalue("sqlite_repo")


async def _asset(
    repo: LibraryRepoPort,
    filename: str,
    folder_id: UUID | None = None,
    **kwargs: Any,
) -> Asset:
    request = ReserveRequest(
        filename=filename,
        mime_type=kwargs.pop("mime_type", "image/jpeg"),
        size_bytes=kwargs.pop("size_bytes", 100),
        folder_id=folder_id,
        **kwargs,
    )
    return (await repo.reserve_upload(request)).asset


class TestFolders:
    @pytest.mark.asyncio
    async def test_create_and_get(self, repo: LibraryRepoPort) -> None:
        folder = await repo.create_folder("Summer Trip")

        fetched = await repo.get_folder(folder.id)
        assert fetched is not None
        assert fetched.name == "Summer Trip"
        assert fetched.slug == "summer-trip"
        assert fetched.parent_id is None
        assert fetched.is_empty

    @pytest.mark.asyncio
    async def test_create_under_missing_parent(self, repo: LibraryRepoPort) -> None:
        with pytest.raises(KeyError):
            await repo.create_folder("orphan", uuid4())

    @pytest.mark.asyncio
    async def test_list_by_parent_with_counts(self, repo: LibraryRepoPort) -> None:
        parent = await repo.create_folder("parent")
        await repo.create_folder("b-child", parent.id)
        await repo.create_folder("a-child", parent.id)
        await _asset(repo, "x.jpg", parent.id)

        roots = await repo.list_folders(None)
        children = await repo.list_folders(parent.id)

        assert [f.name for f in roots] == ["parent"]
        assert roots[0].child_count == 2
        assert roots[0].asset_count == 1
        assert [f.name for f in children] == ["a-child", "b-child"]

    @pytest.mark.asyncio
    async def test_reparent_and_rename(self, repo: LibraryRepoPort) -> None:
        a = await repo.create_folder("a")
        b = await repo.create_folder("b")

        moved = await repo.update_folder(b.id, parent_id=a.id)
        assert moved.parent_id == a.id

        renamed = await repo.update_folder(b.id, name="Bee")
        assert renamed.name == "Bee"
        assert renamed.parent_id == a.id

        back = await repo.update_folder(b.id, parent_id=None)
        assert back.parent_id is None

    @pytest.mark.asyncio
    async def test_update_missing(self, repo: LibraryRepoPort) -> None:
        with pytest.raises(KeyError):
            await repo.update_folder(uuid4(), parent_id=None)

    @pytest.mark.asyncio
    async def test_delete_non_empty_requires_recursive(self, repo: LibraryRepoPort) -> None:
        parent = await repo.create_folder("parent")
        await repo.create_folder("child", parent.id)

        with pytest.raises(NotEmptyError):
            await repo.delete_folder(parent.id)
        assert await repo.get_folder(parent.id) is not None

    @pytest.mark.asyncio
    async def test_recursive_delete_cascades(self, repo: LibraryRepoPort) -> None:
        parent = await repo.create_folder("parent")
        child = await repo.create_folder("child", parent.id)
        grandchild = await repo.create_folder("grandchild", child.id)
        deep = await _asset(repo, "deep.jpg", grandchild.id)
        other = await _asset(repo, "other.jpg")

        await repo.delete_folder(parent.id, recursive=True)

        assert await repo.get_folder(child.id) is None
        assert await repo.get_folder(grandchild.id) is None
        assert await repo.get_asset(deep.id) is None
        assert await repo.get_asset(other.id) is not None

    @pytest.mark.asyncio
    async def test_delete_missing(self, repo: LibraryRepoPort) -> None:
        with pytest.raises(KeyError):
            await repo.delete_folder(uuid4())


class TestAssets:
    @pytest.mark.asyncio
    async def test_reserve_creates_record(self, repo: LibraryRepoPort) -> None:
        reservation = await repo.reserve_upload(
            ReserveRequest(
                filename="beach shot.jpg",
                mime_type="image/jpeg",
                size_bytes=42,
                width=4,
                height=3,
                alt="beach",
            )
        )

        assert reservation.is_new
        assert reservation.target.key.startswith("media/2025/01/")
        assert reservation.target.key.endswith("-beach-shot.jpg")
        assert reservation.target.url == f"/media/{reservation.target.key}"
        stored = await repo.get_asset(reservation.asset.id)
        assert stored is not None
        assert stored.size_bytes == 42
        assert stored.alt == "beach"
        assert stored.storage_key == reservation.target.key

    @pytest.mark.asyncio
    async def test_reserve_replace(self, repo: LibraryRepoPort) -> None:
        original = await _asset(repo, "a.png", mime_type="image/png")
        reservation = await repo.reserve_upload(
            ReserveRequest(
                filename="a.jpg",
                mime_type="image/jpeg",
                size_bytes=7,
                replace_asset_id=original.id,
            )
        )

        assert not reservation.is_new
        assert reservation.asset.id == original.id
        assert reservation.asset.mime_type == "image/jpeg"
        assert reservation.asset.created_at == original.created_at

    @pytest.mark.asyncio
    async def test_reserve_replace_missing(self, repo: LibraryRepoPort) -> None:
        with pytest.raises(KeyError):
            await repo.reserve_upload(
                ReserveRequest(
                    filename="a.jpg", mime_type="image/jpeg", size_bytes=1,
                    replace_asset_id=uuid4(),
                )
            )

    @pytest.mark.asyncio
    async def test_move_asset(self, repo: LibraryRepoPort) -> None:
        folder = await repo.create_folder("f")
        asset = await _asset(repo, "a.jpg")

        moved = await repo.update_asset(asset.id, folder_id=folder.id)

        assert moved.folder_id == folder.id
        assert [a.id for a in await repo.list_assets(folder.id)] == [asset.id]
        assert await repo.list_assets(None) == []

    @pytest.mark.asyncio
    async def test_move_asset_to_missing_folder(self, repo: LibraryRepoPort) -> None:
        asset = await _asset(repo, "a.jpg")
        with pytest.raises(KeyError):
            await repo.update_asset(asset.id, folder_id=uuid4())

    @pytest.mark.asyncio
    async def test_delete_asset(self, repo: LibraryRepoPort) -> None:
        asset = await _asset(repo, "a.jpg")
        await repo.delete_asset(asset.id)
        assert await repo.get_asset(asset.id) is None
        with pytest.raises(KeyError):
            await repo.delete_asset(asset.id)


class TestAssetFilters:
    @pytest.fixture
    async def seeded(self, repo: LibraryRepoPort) -> LibraryRepoPort:
        tag = Tag(name="summer")
        repo.add_tag(tag)  # type: ignore[attr-defined]
        await _asset(repo, "beach.jpg", size_bytes=300, alt="Sunny coast", tag_ids=(tag.id,))
        await _asset(repo, "Alps.png", size_bytes=100, mime_type="image/png")
        await _asset(repo, "clip.webp", size_bytes=200, mime_type="image/webp")
        return repo

    @pytest.mark.asyncio
    async def test_search_matches_filename_and_alt(self, seeded: LibraryRepoPort) -> None:
        by_name = await seeded.list_assets(None, AssetFilters(search="alp"))
        by_alt = await seeded.list_assets(None, AssetFilters(search="sunny"))
        assert [a.filename for a in by_name] == ["Alps.png"]
        assert [a.filename for a in by_alt] == ["beach.jpg"]

    @pytest.mark.asyncio
    async def test_tag_filter(self, seeded: LibraryRepoPort) -> None:
        assets = await seeded.list_assets(None, AssetFilters(tags=("summer",)))
        assert [a.filename for a in assets] == ["beach.jpg"]
        assert [t.name for t in assets[0].tags] == ["summer"]

    @pytest.mark.asyncio
    async def test_mime_prefix(self, seeded: LibraryRepoPort) -> None:
        assets = await seeded.list_assets(None, AssetFilters(mime_type_prefix="image/p"))
        assert [a.filename for a in assets] == ["Alps.png"]

    @pytest.mark.asyncio
    async def test_sort_by_size(self, seeded: LibraryRepoPort) -> None:
        assets = await seeded.list_assets(
            None, AssetFilters(sort_by="size_bytes", sort_order="asc")
        )
        assert [a.size_bytes for a in assets] == [100, 200, 300]

    @pytest.mark.asyncio
    async def test_sort_by_filename_case_insensitive(self, seeded: LibraryRepoPort) -> None:
        assets = await seeded.list_assets(None, AssetFilters(sort_by="filename", sort_order="asc"))
        assert [a.filename for a in assets] == ["Alps.png", "beach.jpg", "clip.webp"]
