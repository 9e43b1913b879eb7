"""
Watermark component unit tests.

Anchor resolution, size scaling, compositing and the settings store.
"""

from __future__ import annotations

import pytest
from PIL import Image

from src.adapters.clock import FrozenClock
from src.adapters.memory import InMemoryWatermarkSettingsRepo
from src.components.watermark import (
    POSITION_ANCHORS,
    UpdateWatermarkInput,
    WatermarkSettings,
    WatermarkSettingsStore,
    composite,
    get_default_settings,
    mark_size,
    place_box,
    render_preview,
    resolve_anchor,
    scaled_padding,
    validate_patch,
)


def _canvas(width: int = 1000, height: int = 600) -> Image.Image:
    return Image.new("RGB", (width, height), (0, 0, 0))


def _changed_bbox(before: Image.Image, after: Image.Image) -> tuple[int, int, int, int] | None:
    diff = Image.new("L", before.size)
    diff.putdata(
        [int(a != b) * 255 for a, b in zip(before.getdata(), after.getdata(), strict=True)]
    )
    return diff.getbbox()


class TestResolution:
    """Test anchors, padding and sizes."""

    def test_padding_scales_with_width(self) -> None:
        assert scaled_padding(20, 1000) == 20
        assert scaled_padding(20, 2000) == 40
        assert scaled_padding(20, 500, reference_width=1000) == 10

    def test_bottom_right_anchor(self) -> None:
        anchor = resolve_anchor("bottom-right", 800, 600, 16)
        assert (anchor.x, anchor.y) == (784, 584)
        assert (anchor.align, anchor.baseline) == ("end", "bottom")

    def test_center_anchor(self) -> None:
        anchor = resolve_anchor("center", 800, 600, 16)
        assert (anchor.x, anchor.y) == (400, 300)
        assert (anchor.align, anchor.baseline) == ("center", "middle")

    def test_all_nine_positions_inside_image(self) -> None:
        assert len(POSITION_ANCHORS) == 9
        for position in POSITION_ANCHORS:
            anchor = resolve_anchor(position, 500, 300, 10)
            assert 0 <= anchor.x <= 500
            assert 0 <= anchor.y <= 300

    def test_mark_size_multipliers(self) -> None:
        assert mark_size(1000, "small") == 15
        assert mark_size(1000, "medium") == 25
        assert mark_size(1000, "large") == 40
        assert mark_size(10, "small") == 1

    def test_place_box_aligns_end_bottom(self) -> None:
        anchor = resolve_anchor("bottom-right", 100, 100, 0)
        assert place_box(anchor, 30, 10) == (70, 90)


class TestComposite:
    """Test overlaying marks."""

    def test_disabled_returns_input(self) -> None:
        image = _canvas()
        assert composite(image, WatermarkSettings(enabled=False)) is image

    def test_empty_text_returns_input(self) -> None:
        image = _canvas()
        assert composite(image, WatermarkSettings(enabled=True, text="")) is image

    def test_logo_without_image_returns_input(self) -> None:
        image = _canvas()
        settings = WatermarkSettings(enabled=True, type="logo", logo_url="http://x/logo.png")
        assert composite(image, settings) is image

    def test_text_mode_ignores_logo(self) -> None:
        image = _canvas()
        logo = Image.new("RGBA", (400, 400), (255, 255, 255, 255))
        settings = WatermarkSettings(enabled=True, text="Sample", opacity=100, padding=20)

        with_logo = composite(image, settings, logo=logo)

        assert _changed_bbox(composite(image, settings), with_logo) is None

    def test_text_lands_near_bottom_right(self) -> None:
        image = _canvas()
        settings = WatermarkSettings(enabled=True, text="Sample", opacity=100, padding=20)

        output = composite(image, settings)
        bbox = _changed_bbox(image, output)

        assert output.mode == image.mode
        assert output.size == image.size
        assert bbox is not None
        left, top, right, bottom = bbox
        # Mark ends within the padding (plus shadow spread) of the corner.
        assert 1000 - 20 - 10 <= right <= 1000
        assert 600 - 20 - 10 <= bottom <= 600
        assert left > 500 and top > 300

    def test_top_left_position(self) -> None:
        image = _canvas()
        settings = WatermarkSettings(
            enabled=True, text="Sample", opacity=100, position="top-left", padding=20
        )
        bbox = _changed_bbox(image, composite(image, settings))
        assert bbox is not None
        assert bbox[0] >= 15 and bbox[1] >= 15
        assert bbox[2] < 500 and bbox[3] < 300

    def test_zero_opacity_leaves_pixels(self) -> None:
        image = _canvas()
        output = composite(image, WatermarkSettings(enabled=True, opacity=0))
        assert _changed_bbox(image, output) is None

    def test_logo_scaled_to_budget(self) -> None:
        image = _canvas(1000, 1000)
        logo = Image.new("RGBA", (2000, 1000), (255, 255, 255, 255))
        settings = WatermarkSettings(
            enabled=True, type="logo", size="small", opacity=100, padding=0,
            position="top-left",
        )

        bbox = _changed_bbox(image, composite(image, settings, logo=logo))

        # small: 1000 * 0.015 * 10 = 150px wide, aspect kept.
        assert bbox == (0, 0, 150, 75)

    def test_small_logo_not_upscaled(self) -> None:
        image = _canvas(1000, 1000)
        logo = Image.new("RGBA", (40, 20), (255, 255, 255, 255))
        settings = WatermarkSettings(
            enabled=True, type="logo", size="large", opacity=100, padding=0,
            position="top-left",
        )
        assert _changed_bbox(image, composite(image, settings, logo=logo)) == (0, 0, 40, 20)

    def test_preview_width(self) -> None:
        preview = render_preview(
            _canvas(1000, 500), WatermarkSettings(enabled=True), preview_width=400
        )
        assert preview.size == (400, 200)


class TestValidatePatch:
    """Test partial update validation."""

    def test_valid_patch(self) -> None:
        assert validate_patch({"opacity": 50, "padding": 0}) == []

    def test_opacity_out_of_range(self) -> None:
        errors = validate_patch({"opacity": 101})
        assert [e.field for e in errors] == ["opacity"]
        assert errors[0].message == "Opacity must be between 0 and 100"

    def test_negative_padding(self) -> None:
        errors = validate_patch({"padding": -1})
        assert errors[0].message == "Padding must be non-negative"

    def test_unknown_field(self) -> None:
        assert validate_patch({"colour": "red"})[0].code == "unknown_field"


class TestWatermarkSettingsStore:
    """Test load/save lifecycle and caching."""

    @pytest.fixture
    def repo(self) -> InMemoryWatermarkSettingsRepo:
        return InMemoryWatermarkSettingsRepo()

    @pytest.fixture
    def clock(self) -> FrozenClock:
        return FrozenClock()

    @pytest.fixture
    def store(self, repo: InMemoryWatermarkSettingsRepo, clock: FrozenClock) -> WatermarkSettingsStore:
        return WatermarkSettingsStore(repo, clock=clock, ttl_seconds=60)

    def test_defaults_when_empty(self, store: WatermarkSettingsStore) -> None:
        settings = store.load()
        assert settings == get_default_settings()
        assert settings.text == "© My Photography"
        assert settings.opacity == 30
        assert settings.padding == 20
        assert settings.position == "bottom-right"
        assert settings.size == "medium"
        assert settings.enabled is False

    def test_save_merges_patch(
        self, store: WatermarkSettingsStore, repo: InMemoryWatermarkSettingsRepo
    ) -> None:
        result = store.save(UpdateWatermarkInput(patch={"enabled": True, "opacity": 80}))

        assert result.success
        assert result.settings is not None
        assert result.settings.opacity == 80
        assert result.settings.text == "© My Photography"
        assert repo.get()["enabled"] is True  # type: ignore[index]

    def test_invalid_save_not_persisted(
        self, store: WatermarkSettingsStore, repo: InMemoryWatermarkSettingsRepo
    ) -> None:
        result = store.save(UpdateWatermarkInput(patch={"opacity": 150}))

        assert not result.success
        assert result.errors[0].field == "opacity"
        assert repo.save_count == 0

    def test_invalid_type_rejected(self, store: WatermarkSettingsStore) -> None:
        result = store.save(UpdateWatermarkInput(patch={"position": "middle-ish"}))
        assert not result.success
        assert result.errors[0].field == "position"

    def test_cached_for_ttl(
        self,
        store: WatermarkSettingsStore,
        repo: InMemoryWatermarkSettingsRepo,
        clock: FrozenClock,
    ) -> None:
        assert store.load().opacity == 30
        repo.save({"opacity": 55})  # written behind the store's back

        clock.advance(30)
        assert store.load().opacity == 30

        clock.advance(31)
        assert store.load().opacity == 55

    def test_save_invalidates_cache(self, store: WatermarkSettingsStore) -> None:
        store.load()
        store.save(UpdateWatermarkInput(patch={"opacity": 10}))
        assert store.load().opacity == 10

    def test_corrupt_stored_value_falls_back(self, repo: InMemoryWatermarkSettingsRepo) -> None:
        repo.save({"opacity": "lots"})
        store = WatermarkSettingsStore(repo, clock=FrozenClock())
        assert store.load() == get_default_settings()

    def test_reset(self, store: WatermarkSettingsStore) -> None:
        store.save(UpdateWatermarkInput(patch={"enabled": True}))
        assert store.reset() == get_default_settings()
        assert store.load().enabled is False
