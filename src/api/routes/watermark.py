"""
Watermark settings API routes.
"""

import io
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import Response
from PIL import Image

from src.api.deps import get_rules, get_watermark_store
from src.components.watermark import (
    UpdateWatermarkInput,
    WatermarkSettings,
    WatermarkSettingsStore,
    render_preview,
)
from src.rules.models import LibraryRules

router = APIRouter()

_PREVIEW_SAMPLE_SIZE = (1000, 667)


@router.get("/watermark", response_model=WatermarkSettings)
def get_watermark_settings(
    store: WatermarkSettingsStore = Depends(get_watermark_store),
) -> WatermarkSettings:
    return store.load()


@router.put("/watermark", response_model=WatermarkSettings)
def update_watermark_settings(
    patch: dict[str, Any] = Body(...),
    store: WatermarkSettingsStore = Depends(get_watermark_store),
) -> WatermarkSettings:
    result = store.save(UpdateWatermarkInput(patch=patch))
    if not result.success or result.settings is None:
        raise HTTPException(
            status_code=422,
            detail=[{"code": e.code, "message": e.message, "field": e.field} for e in result.errors],
        )
    return result.settings


@router.get("/watermark/preview")
def preview_watermark(
    store: WatermarkSettingsStore = Depends(get_watermark_store),
    rules: LibraryRules = Depends(get_rules),
) -> Response:
    """PNG of a neutral sample with the current text mark applied."""
    settings = store.load()
    sample = Image.new("RGB", _PREVIEW_SAMPLE_SIZE, (96, 110, 128))
    preview = render_preview(
        sample,
        settings,
        preview_width=rules.watermark.preview_width,
        reference_width=rules.watermark.reference_width,
    )
    buffer = io.BytesIO()
    preview.save(buffer, format="PNG")
    return Response(content=buffer.getvalue(), media_type="image/png")
