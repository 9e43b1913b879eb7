"""
Watermark component - Text or logo mark compositing.

Overlays a mark onto a raster according to position, size and opacity.
Used by the derivation pipeline (last step) and by the settings preview.

Invariants:
- Disabled settings leave the image untouched
- Size scales with output width (width x multiplier), never a raw pixel value
- Padding scales with output width relative to the authoring reference width
"""

from __future__ import annotations

import logging

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from .models import (
    Anchor,
    HorizontalAnchor,
    TextAlign,
    TextBaseline,
    VerticalAnchor,
    WatermarkPosition,
    WatermarkSettings,
    WatermarkSize,
)

logger = logging.getLogger(__name__)

# Width the padding setting is authored against.
REFERENCE_WIDTH = 1000

SIZE_MULTIPLIERS: dict[WatermarkSize, float] = {
    "small": 0.015,
    "medium": 0.025,
    "large": 0.04,
}

# Logo width budget, as a multiple of the text size budget.
LOGO_WIDTH_FACTOR = 10

SHADOW_BLUR_RATIO = 0.1
SHADOW_OFFSET_RATIO = 0.05
SHADOW_ALPHA = 0.5

POSITION_ANCHORS: dict[WatermarkPosition, tuple[HorizontalAnchor, VerticalAnchor]] = {
    "top-left": ("left", "top"),
    "top-center": ("center", "top"),
    "top-right": ("right", "top"),
    "center-left": ("left", "center"),
    "center": ("center", "center"),
    "center-right": ("right", "center"),
    "bottom-left": ("left", "bottom"),
    "bottom-center": ("center", "bottom"),
    "bottom-right": ("right", "bottom"),
}

_ALIGN: dict[HorizontalAnchor, TextAlign] = {"left": "start", "center": "center", "right": "end"}
_BASELINE: dict[VerticalAnchor, TextBaseline] = {"top": "top", "center": "middle", "bottom": "bottom"}
_ALIGN_SHIFT: dict[TextAlign, float] = {"start": 0.0, "center": 0.5, "end": 1.0}
_BASELINE_SHIFT: dict[TextBaseline, float] = {"top": 0.0, "middle": 0.5, "bottom": 1.0}


# --- Resolution ---


def scaled_padding(padding: int, width: int, reference_width: int = REFERENCE_WIDTH) -> float:
    return padding * width / reference_width


def resolve_anchor(
    position: WatermarkPosition,
    width: int,
    height: int,
    padding: float,
) -> Anchor:
    """Anchor point for one of the nine named positions."""
    horizontal, vertical = POSITION_ANCHORS[position]
    x = {"left": padding, "center": width / 2, "right": width - padding}[horizontal]
    y = {"top": padding, "center": height / 2, "bottom": height - padding}[vertical]
    return Anchor(x=x, y=y, align=_ALIGN[horizontal], baseline=_BASELINE[vertical])


def mark_size(width: int, size: WatermarkSize) -> int:
    """Font size for the given output width, at least 1px."""
    return max(1, round(width * SIZE_MULTIPLIERS[size]))


def place_box(anchor: Anchor, box_width: float, box_height: float) -> tuple[int, int]:
    """Top-left corner of a box aligned to the anchor."""
    left = anchor.x - box_width * _ALIGN_SHIFT[anchor.align]
    top = anchor.y - box_height * _BASELINE_SHIFT[anchor.baseline]
    return round(left), round(top)


def load_font(size: int, font_path: str | None = None) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    if font_path:
        return ImageFont.truetype(font_path, size)
    return ImageFont.load_default(size=size)


# --- Compositing ---


def _text_layers(
    size: tuple[int, int],
    settings: WatermarkSettings,
    anchor: Anchor,
    font_size: int,
    font_path: str | None,
) -> tuple[Image.Image, Image.Image]:
    font = load_font(font_size, font_path)
    measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = measure.textbbox((0, 0), settings.text, font=font)
    x, y = place_box(anchor, right - left, bottom - top)
    origin = (x - left, y - top)
    opacity = settings.opacity / 100

    offset = max(1, round(font_size * SHADOW_OFFSET_RATIO))
    shadow = Image.new("RGBA", size, (0, 0, 0, 0))
    ImageDraw.Draw(shadow).text(
        (origin[0] + offset, origin[1] + offset),
        settings.text,
        font=font,
        fill=(0, 0, 0, round(255 * SHADOW_ALPHA * opacity)),
    )
    shadow = shadow.filter(ImageFilter.GaussianBlur(radius=font_size * SHADOW_BLUR_RATIO))

    text = Image.new("RGBA", size, (0, 0, 0, 0))
    ImageDraw.Draw(text).text(
        origin, settings.text, font=font, fill=(255, 255, 255, round(255 * opacity))
    )
    return shadow, text


def _logo_layer(
    size: tuple[int, int],
    settings: WatermarkSettings,
    anchor: Anchor,
    logo: Image.Image,
) -> Image.Image:
    width = size[0]
    max_width = round(width * SIZE_MULTIPLIERS[settings.size] * LOGO_WIDTH_FACTOR)
    scale = min(max_width / logo.width, 1.0) if logo.width else 1.0
    logo_size = (max(1, round(logo.width * scale)), max(1, round(logo.height * scale)))

    mark = logo.convert("RGBA")
    if mark.size != logo_size:
        mark = mark.resize(logo_size, Image.Resampling.LANCZOS)
    opacity = settings.opacity / 100
    mark.putalpha(mark.getchannel("A").point(lambda a: round(a * opacity)))

    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    layer.paste(mark, place_box(anchor, *logo_size), mark)
    return layer


def composite(
    image: Image.Image,
    settings: WatermarkSettings,
    *,
    logo: Image.Image | None = None,
    reference_width: int = REFERENCE_WIDTH,
    font_path: str | None = None,
) -> Image.Image:
    """
    Overlay the configured mark.

    Args:
        image: Target raster; the result keeps its mode.
        settings: Watermark settings value.
        logo: Decoded logo image (logo mode only).
        reference_width: Width the padding was authored against.
        font_path: TrueType font for text marks (Pillow's default otherwise).

    Returns:
        New image with the mark, or the input unchanged when nothing applies.
    """
    if not settings.enabled:
        return image
    if settings.type == "text":
        if not settings.text:
            return image
    elif logo is None:
        logger.warning("Logo watermark enabled but no logo available; skipping")
        return image

    base = image if image.mode == "RGBA" else image.convert("RGBA")
    width, height = base.size
    padding = scaled_padding(settings.padding, width, reference_width)
    anchor = resolve_anchor(settings.position, width, height, padding)

    if logo is not None and settings.type == "logo":
        output = Image.alpha_composite(base, _logo_layer(base.size, settings, anchor, logo))
    else:
        shadow, text = _text_layers(
            base.size, settings, anchor, mark_size(width, settings.size), font_path
        )
        output = Image.alpha_composite(Image.alpha_composite(base, shadow), text)

    return output if image.mode == "RGBA" else output.convert(image.mode)


def render_preview(
    sample: Image.Image,
    settings: WatermarkSettings,
    *,
    preview_width: int = 400,
    logo: Image.Image | None = None,
    reference_width: int = REFERENCE_WIDTH,
) -> Image.Image:
    """Settings preview: the sample scaled to preview_width with the mark applied."""
    height = max(1, round(sample.height * preview_width / sample.width))
    scaled = sample.convert("RGBA").resize((preview_width, height), Image.Resampling.LANCZOS)
    return composite(scaled, settings, logo=logo, reference_width=reference_width)
