"""
Tests for the media edit route.

The app is wired to in-memory adapters; a failing transfer port exercises
the partial-upload path.
"""

from __future__ import annotations

import io
import json
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image

from src.adapters.clock import FrozenClock
from src.adapters.memory import (
    InMemoryLibraryRepo,
    InMemoryObjectStore,
    InMemoryWatermarkSettingsRepo,
)
from src.api.deps import get_edit_service, get_rules
from src.api.routes import media_edit
from src.components.edit import MediaEditService
from src.components.upload import UploadCoordinator
from src.components.watermark import WatermarkSettingsStore
from src.core.ports.storage import TransferFailedError
from src.domain.entities import Asset
from src.rules.models import DeriveRules, LibraryRules, ProjectRules, UploadsRules

# --- Test Setup ---


class FailingStore:
    """TransferPort whose writes always fail."""

    async def write(self, target, data, mime_type, size_bytes):  # type: ignore[no-untyped-def]
        raise TransferFailedError(target.key, "connection reset")


def _png(size: tuple[int, int] = (120, 80)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (90, 110, 130)).save(buffer, format="PNG")
    return buffer.getvalue()


def _spec(**overrides: object) -> str:
    spec: dict[str, object] = {"crop": {"x": 10, "y": 10, "width": 50, "height": 40}}
    spec.update(overrides)
    return json.dumps(spec)


@pytest.fixture
def rules() -> LibraryRules:
    return LibraryRules(
        project=ProjectRules(slug="test", rules_version="1"),
        uploads=UploadsRules(
            max_upload_bytes=5_000_000,
            allowlist_mime_types=["image/jpeg", "image/png"],
        ),
        derive=DeriveRules(max_source_bytes=200_000),
    )


@pytest.fixture
def repo() -> InMemoryLibraryRepo:
    return InMemoryLibraryRepo(clock=FrozenClock(), public_base_url="/media")


@pytest.fixture
def objects() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def original(repo: InMemoryLibraryRepo) -> Asset:
    return repo.add_asset(
        Asset(
            filename="beach.png",
            url="/media/beach.png",
            mime_type="image/png",
            size_bytes=1234,
            width=120,
            height=80,
        )
    )


def _build_app(rules: LibraryRules, service: MediaEditService) -> FastAPI:
    app = FastAPI()
    app.include_router(media_edit.router, prefix="/api/media")
    app.dependency_overrides[get_edit_service] = lambda: service
    app.dependency_overrides[get_rules] = lambda: rules
    return app


def _service(repo: InMemoryLibraryRepo, transfer: object) -> MediaEditService:
    return MediaEditService(
        repo,
        UploadCoordinator(repo, transfer),  # type: ignore[arg-type]
        WatermarkSettingsStore(InMemoryWatermarkSettingsRepo(), clock=FrozenClock()),
    )


@pytest.fixture
def client(
    rules: LibraryRules, repo: InMemoryLibraryRepo, objects: InMemoryObjectStore
) -> TestClient:
    return TestClient(_build_app(rules, _service(repo, objects)))


def _post(client: TestClient, asset_id: object, spec: str, **form: str) -> object:
    return client.post(
        f"/api/media/{asset_id}/edit",
        files={"file": ("beach.png", _png(), "image/png")},
        data={"spec": spec, **form},
    )


# --- Tests ---


class TestEditRoute:
    """POST /{asset_id}/edit."""

    def test_save_as_new(
        self,
        client: TestClient,
        original: Asset,
        repo: InMemoryLibraryRepo,
        objects: InMemoryObjectStore,
    ) -> None:
        response = _post(client, original.id, _spec())

        assert response.status_code == 200
        body = response.json()
        assert body["is_new"] is True
        assert body["source_asset_id"] == str(original.id)
        assert body["watermarked"] is False
        asset = body["asset"]
        assert asset["filename"] == "edited-beach.jpg"
        assert asset["mime_type"] == "image/jpeg"
        assert (asset["width"], asset["height"]) == (50, 40)
        assert len(objects.objects) == 1
        assert len(repo._assets) == 2

    def test_overwrite(
        self, client: TestClient, original: Asset, repo: InMemoryLibraryRepo
    ) -> None:
        response = _post(client, original.id, _spec(), save_as_new="false")

        body = response.json()
        assert response.status_code == 200
        assert body["is_new"] is False
        assert body["asset"]["id"] == str(original.id)
        assert body["asset"]["filename"] == "beach.jpg"
        assert len(repo._assets) == 1

    def test_spec_watermark_applied(self, client: TestClient, original: Asset) -> None:
        spec = _spec(watermark={"enabled": True, "text": "© Test"})

        body = _post(client, original.id, spec).json()

        assert body["watermarked"] is True

    def test_unknown_asset(self, client: TestClient) -> None:
        response = _post(client, uuid4(), _spec())
        assert response.status_code == 404

    def test_invalid_spec_json(self, client: TestClient, original: Asset) -> None:
        response = _post(client, original.id, '{"crop": "everything"}')
        assert response.status_code == 422

    def test_out_of_range_adjustment(self, client: TestClient, original: Asset) -> None:
        response = _post(client, original.id, _spec(brightness=150))
        assert response.status_code == 422

    def test_crop_outside_canvas(self, client: TestClient, original: Asset) -> None:
        spec = _spec(crop={"x": 100, "y": 0, "width": 50, "height": 40})
        response = _post(client, original.id, spec)
        assert response.status_code == 422

    def test_undecodable_source(self, client: TestClient, original: Asset) -> None:
        response = client.post(
            f"/api/media/{original.id}/edit",
            files={"file": ("x.png", b"not an image", "image/png")},
            data={"spec": _spec()},
        )
        assert response.status_code == 422

    def test_source_too_large(self, client: TestClient, original: Asset) -> None:
        response = client.post(
            f"/api/media/{original.id}/edit",
            files={"file": ("x.png", b"\0" * 200_001, "image/png")},
            data={"spec": _spec()},
        )
        assert response.status_code == 413

    def test_partial_upload_reports_asset_id(
        self, rules: LibraryRules, repo: InMemoryLibraryRepo, original: Asset
    ) -> None:
        client = TestClient(_build_app(rules, _service(repo, FailingStore())))

        response = _post(client, original.id, _spec())

        assert response.status_code == 502
        detail = response.json()["detail"]
        reserved_id = detail["asset_id"]
        assert reserved_id != str(original.id)
        assert any(str(a.id) == reserved_id for a in repo._assets.values())
