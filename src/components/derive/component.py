"""
Derive component - Image derivation pipeline.

Turns a source raster plus an EditSpec into a new raster, in a fixed order:
rotation canvas -> crop -> brightness/contrast/saturation -> filter preset ->
watermark.

Invariants:
- Output is exactly crop.width x crop.height
- Rotation happens before cropping: the crop addresses the rotated canvas
- Filter presets stack on top of the manual adjustments, never replace them
- The watermark is composited last, untouched by photometric settings
- A crop outside the canvas is rejected (InvalidCropError), never clamped
"""

from __future__ import annotations

import io
import math

from PIL import Image, ImageOps, UnidentifiedImageError

from src.components.watermark import composite
from src.domain.errors import DecodeError, InvalidCropError

from ._color import apply_ops
from .models import (
    CanvasGeometry,
    CropRect,
    DerivedImage,
    EditSpec,
    FilterOp,
    FilterPreset,
    OutputMimeType,
)

DEFAULT_QUALITY = 95  # ~0.95 on a 0..1 scale

# Fixed operator stacks per preset.
FILTER_PRESETS: dict[FilterPreset, tuple[FilterOp, ...]] = {
    "none": (),
    "bw": (FilterOp("grayscale", 1.0),),
    "vintage": (
        FilterOp("sepia", 0.4),
        FilterOp("contrast", 0.9),
        FilterOp("brightness", 0.9),
    ),
    "cinematic": (
        FilterOp("contrast", 1.1),
        FilterOp("saturate", 0.85),
        FilterOp("brightness", 0.95),
    ),
    "warm": (
        FilterOp("sepia", 0.2),
        FilterOp("saturate", 1.1),
    ),
    "cool": (
        FilterOp("saturate", 0.9),
        FilterOp("hue-rotate", 10.0),
        FilterOp("brightness", 1.05),
    ),
}

_PIL_FORMATS: dict[str, str] = {
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
    "image/png": "PNG",
}

# Rotations that map the pixel grid onto itself (clockwise degrees).
_RIGHT_ANGLE_TRANSPOSE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}

_EPSILON = 1e-6


# --- Geometry ---


def rotated_bounds(width: int, height: int, degrees: float) -> tuple[float, float]:
    """Axis-aligned bounding box of a width x height rectangle rotated by degrees."""
    rad = math.radians(degrees)
    sin = abs(math.sin(rad))
    cos = abs(math.cos(rad))
    return width * cos + height * sin, width * sin + height * cos


def compute_geometry(source_size: tuple[int, int], degrees: float) -> CanvasGeometry:
    width, height = source_size
    rotated_w, rotated_h = rotated_bounds(width, height, degrees)
    return CanvasGeometry(
        source_width=width,
        source_height=height,
        rotated_width=rotated_w,
        rotated_height=rotated_h,
        canvas_width=math.ceil(rotated_w - _EPSILON),
        canvas_height=math.ceil(rotated_h - _EPSILON),
    )


def validate_crop(crop: CropRect, geometry: CanvasGeometry) -> None:
    """
    Reject crops that leave the rotated canvas.

    Raises:
        InvalidCropError: If the rectangle is empty or not fully inside.
    """
    bounds = (geometry.canvas_width, geometry.canvas_height)
    if crop.width <= 0 or crop.height <= 0:
        raise InvalidCropError(
            f"Crop size must be positive, got {crop.width}x{crop.height}", bounds=bounds
        )
    if (
        crop.x < 0
        or crop.y < 0
        or crop.x + crop.width > geometry.canvas_width
        or crop.y + crop.height > geometry.canvas_height
    ):
        raise InvalidCropError(
            f"Crop {crop.box} lies outside the {bounds[0]}x{bounds[1]} image",
            bounds=bounds,
        )


def _normalize_degrees(degrees: float) -> float:
    normalized = math.fmod(degrees, 360.0)
    return normalized + 360.0 if normalized < 0 else normalized


def place_on_canvas(
    image: Image.Image,
    crop: CropRect,
    degrees: float,
    geometry: CanvasGeometry,
) -> Image.Image:
    """
    Draw the rotated source into a crop-sized canvas.

    Equivalent to: translate(-crop.xy), translate(rotated/2), rotate(θ),
    translate(-source/2), draw source. Computed as a single inverse affine
    map from output pixels to source pixels.
    """
    degrees = _normalize_degrees(degrees)
    if math.isclose(degrees, 0.0, abs_tol=_EPSILON) or math.isclose(
        degrees, 360.0, abs_tol=_EPSILON
    ):
        return image.crop(crop.box)

    right_angle = round(degrees)
    if right_angle in _RIGHT_ANGLE_TRANSPOSE and math.isclose(
        degrees, right_angle, abs_tol=_EPSILON
    ):
        return image.transpose(_RIGHT_ANGLE_TRANSPOSE[right_angle]).crop(crop.box)

    rad = math.radians(degrees)
    cos, sin = math.cos(rad), math.sin(rad)
    # Output pixel (u, v) sits at canvas point (u + crop.x, v + crop.y).
    px = crop.x - geometry.rotated_width / 2
    py = crop.y - geometry.rotated_height / 2
    coefficients = (
        cos,
        sin,
        cos * px + sin * py + geometry.source_width / 2,
        -sin,
        cos,
        -sin * px + cos * py + geometry.source_height / 2,
    )
    return image.transform(
        (crop.width, crop.height),
        Image.Transform.AFFINE,
        coefficients,
        resample=Image.Resampling.BICUBIC,
        fillcolor=(0, 0, 0, 0),
    )


# --- Photometric ---


def adjustment_ops(spec: EditSpec) -> list[FilterOp]:
    """Manual adjustments (100% + value) followed by the preset's operators."""
    return [
        FilterOp("brightness", (100 + spec.brightness) / 100),
        FilterOp("contrast", (100 + spec.contrast) / 100),
        FilterOp("saturate", (100 + spec.saturation) / 100),
        *FILTER_PRESETS[spec.filter_preset],
    ]


def apply_adjustments(image: Image.Image, spec: EditSpec) -> Image.Image:
    return apply_ops(image, adjustment_ops(spec))


# --- Decode / Encode ---


def decode_image(data: bytes) -> Image.Image:
    """
    Decode bytes into an RGBA image, honoring EXIF orientation.

    Raises:
        DecodeError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as opened:
            opened.load()
            upright = ImageOps.exif_transpose(opened) or opened
            return upright.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Cannot decode source image: {e}") from e


def encode_image(
    image: Image.Image,
    mime_type: OutputMimeType = "image/jpeg",
    quality: int = DEFAULT_QUALITY,
) -> bytes:
    """Encode to a compressed raster. JPEG drops alpha."""
    fmt = _PIL_FORMATS.get(mime_type)
    if fmt is None:
        raise ValueError(f"Unsupported output type: {mime_type}")
    if fmt == "JPEG" and image.mode != "RGB":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    if fmt == "PNG":
        image.save(buffer, format=fmt, optimize=True)
    else:
        image.save(buffer, format=fmt, quality=quality)
    return buffer.getvalue()


# --- Entry points ---


def derive(
    source: Image.Image,
    spec: EditSpec,
    *,
    logo: Image.Image | None = None,
    reference_width: int | None = None,
) -> Image.Image:
    """
    Run the pipeline on decoded pixels.

    Args:
        source: Source raster (any mode; converted to RGBA).
        spec: Edit specification.
        logo: Decoded logo when spec.watermark is a logo watermark.
        reference_width: Width the watermark padding was authored against.

    Returns:
        RGBA image of exactly crop.width x crop.height.

    Raises:
        InvalidCropError: If the crop leaves the rotated canvas.
    """
    image = source if source.mode == "RGBA" else source.convert("RGBA")
    geometry = compute_geometry(image.size, spec.rotation_degrees)
    validate_crop(spec.crop, geometry)

    output = place_on_canvas(image, spec.crop, spec.rotation_degrees, geometry)
    output = apply_adjustments(output, spec)

    if spec.watermark is not None:
        kwargs = {} if reference_width is None else {"reference_width": reference_width}
        output = composite(output, spec.watermark, logo=logo, **kwargs)
    return output


def derive_bytes(
    data: bytes,
    spec: EditSpec,
    *,
    mime_type: OutputMimeType = "image/jpeg",
    quality: int = DEFAULT_QUALITY,
    logo: Image.Image | None = None,
    reference_width: int | None = None,
) -> DerivedImage:
    """
    Decode, derive and encode.

    Raises:
        DecodeError: If data is not a readable image.
        InvalidCropError: If the crop leaves the rotated canvas.
    """
    source = decode_image(data)
    output = derive(source, spec, logo=logo, reference_width=reference_width)
    encoded = encode_image(output, mime_type=mime_type, quality=quality)
    return DerivedImage(
        data=encoded,
        mime_type=mime_type,
        width=output.width,
        height=output.height,
    )


def full_frame_spec(width: int, height: int) -> EditSpec:
    """Identity edit: full-bounds crop, no rotation, no adjustments."""
    return EditSpec(crop=CropRect(x=0, y=0, width=width, height=height))
