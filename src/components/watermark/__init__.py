"""
Watermark component - Text or logo mark compositing and its settings store.
"""

from ._store import (
    DEFAULT_CACHE_TTL_SECONDS,
    WatermarkSettingsStore,
    get_default_settings,
    validate_patch,
)
from .component import (
    LOGO_WIDTH_FACTOR,
    POSITION_ANCHORS,
    REFERENCE_WIDTH,
    SIZE_MULTIPLIERS,
    composite,
    load_font,
    mark_size,
    place_box,
    render_preview,
    resolve_anchor,
    scaled_padding,
)
from .models import (
    Anchor,
    UpdateWatermarkInput,
    UpdateWatermarkOutput,
    WatermarkPosition,
    WatermarkSettings,
    WatermarkSize,
    WatermarkType,
)
from .ports import WatermarkSettingsRepoPort

__all__ = [
    # Entry points
    "composite",
    "render_preview",
    # Helper functions
    "load_font",
    "mark_size",
    "place_box",
    "resolve_anchor",
    "scaled_padding",
    "validate_patch",
    # Configuration
    "DEFAULT_CACHE_TTL_SECONDS",
    "LOGO_WIDTH_FACTOR",
    "POSITION_ANCHORS",
    "REFERENCE_WIDTH",
    "SIZE_MULTIPLIERS",
    # Settings store
    "WatermarkSettingsStore",
    "get_default_settings",
    # Models
    "Anchor",
    "UpdateWatermarkInput",
    "UpdateWatermarkOutput",
    "WatermarkPosition",
    "WatermarkSettings",
    "WatermarkSize",
    "WatermarkType",
    # Ports
    "WatermarkSettingsRepoPort",
]
