"""
Tests for the watermark settings routes.
"""

from __future__ import annotations

import io

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image

from src.adapters.clock import FrozenClock
from src.adapters.memory import InMemoryWatermarkSettingsRepo
from src.api.deps import get_rules, get_watermark_store
from src.api.routes import watermark
from src.components.watermark import WatermarkSettingsStore
from src.rules.models import LibraryRules, ProjectRules, UploadsRules, WatermarkRules


@pytest.fixture
def settings_repo() -> InMemoryWatermarkSettingsRepo:
    return InMemoryWatermarkSettingsRepo()


@pytest.fixture
def client(settings_repo: InMemoryWatermarkSettingsRepo) -> TestClient:
    store = WatermarkSettingsStore(settings_repo, clock=FrozenClock())
    rules = LibraryRules(
        project=ProjectRules(slug="test", rules_version="1"),
        uploads=UploadsRules(max_upload_bytes=1000, allowlist_mime_types=["image/png"]),
        watermark=WatermarkRules(preview_width=300),
    )
    app = FastAPI()
    app.include_router(watermark.router, prefix="/api/settings")
    app.dependency_overrides[get_watermark_store] = lambda: store
    app.dependency_overrides[get_rules] = lambda: rules
    return TestClient(app)


class TestWatermarkSettings:
    def test_defaults(self, client: TestClient) -> None:
        body = client.get("/api/settings/watermark").json()

        assert body["enabled"] is False
        assert body["text"] == "© My Photography"
        assert body["position"] == "bottom-right"
        assert body["opacity"] == 30
        assert body["size"] == "medium"
        assert body["padding"] == 20

    def test_partial_update_merges(
        self, client: TestClient, settings_repo: InMemoryWatermarkSettingsRepo
    ) -> None:
        response = client.put(
            "/api/settings/watermark", json={"enabled": True, "position": "top-left"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["enabled"] is True
        assert body["position"] == "top-left"
        assert body["text"] == "© My Photography"
        assert settings_repo.save_count == 1

        # Next read sees the saved value despite the cache.
        assert client.get("/api/settings/watermark").json()["position"] == "top-left"

    def test_invalid_update_rejected(
        self, client: TestClient, settings_repo: InMemoryWatermarkSettingsRepo
    ) -> None:
        response = client.put("/api/settings/watermark", json={"opacity": 150})

        assert response.status_code == 422
        assert response.json()["detail"][0]["field"] == "opacity"
        assert settings_repo.save_count == 0

    def test_unknown_position_rejected(self, client: TestClient) -> None:
        response = client.put("/api/settings/watermark", json={"position": "middle"})
        assert response.status_code == 422


class TestPreview:
    def test_preview_png(self, client: TestClient) -> None:
        response = client.get("/api/settings/watermark/preview")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        image = Image.open(io.BytesIO(response.content))
        assert image.width == 300
