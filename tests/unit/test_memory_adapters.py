"""
Tests for the in-memory adapters not covered by the repository contract
tests.
"""

from datetime import UTC, datetime, timedelta

import pytest

from src.adapters.memory import (
    InMemoryObjectStore,
    InMemoryWatermarkSettingsRepo,
    filter_assets,
)
from src.core.ports.library import AssetFilters, WriteTarget
from src.core.ports.storage import KeyNotFoundError, SizeMismatchError
from src.domain.entities import Asset

T0 = datetime(2025, 1, 1, tzinfo=UTC)


def _asset(name: str, minutes: int = 0, alt: str | None = None) -> Asset:
    return Asset(
        filename=name,
        url=f"/media/{name}",
        mime_type="image/jpeg",
        size_bytes=1,
        alt=alt,
        created_at=T0 + timedelta(minutes=minutes),
    )


class TestFilterAssets:
    def test_default_is_newest_first(self) -> None:
        assets = [_asset("a", 0), _asset("b", 2), _asset("c", 1)]
        assert [a.filename for a in filter_assets(assets, None)] == ["b", "c", "a"]

    def test_search_ignores_missing_alt(self) -> None:
        assets = [_asset("x.jpg"), _asset("y.jpg", alt="Sea view")]
        result = filter_assets(assets, AssetFilters(search="SEA"))
        assert [a.filename for a in result] == ["y.jpg"]

    def test_input_not_mutated(self) -> None:
        assets = [_asset("b"), _asset("a")]
        filter_assets(assets, AssetFilters(sort_by="filename", sort_order="asc"))
        assert [a.filename for a in assets] == ["b", "a"]


class TestObjectStore:
    @pytest.mark.asyncio
    async def test_write_and_get(self) -> None:
        store = InMemoryObjectStore()
        stored = await store.write(WriteTarget(key="k", url="memory://k"), b"abc", "image/png", 3)

        assert stored.key == "k"
        assert store.get("k") == b"abc"
        assert store.exists("k")

    @pytest.mark.asyncio
    async def test_size_mismatch(self) -> None:
        store = InMemoryObjectStore()
        with pytest.raises(SizeMismatchError):
            await store.write(WriteTarget(key="k", url="memory://k"), b"abc", "image/png", 4)
        assert not store.exists("k")

    def test_missing_key(self) -> None:
        with pytest.raises(KeyNotFoundError):
            InMemoryObjectStore().get("nope")


class TestWatermarkSettingsRepo:
    def test_returns_copies(self) -> None:
        repo = InMemoryWatermarkSettingsRepo({"enabled": True})
        value = repo.get()
        assert value is not None
        value["enabled"] = False
        assert repo.get() == {"enabled": True}
