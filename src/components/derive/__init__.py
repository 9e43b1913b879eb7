"""
Derive component - Image derivation pipeline (crop, rotate, adjust, filter, watermark).
"""

from .component import (
    DEFAULT_QUALITY,
    FILTER_PRESETS,
    adjustment_ops,
    apply_adjustments,
    compute_geometry,
    decode_image,
    derive,
    derive_bytes,
    encode_image,
    full_frame_spec,
    place_on_canvas,
    rotated_bounds,
    validate_crop,
)
from .models import (
    CanvasGeometry,
    CropRect,
    DerivedImage,
    EditSpec,
    FilterOp,
    FilterPreset,
    OutputMimeType,
)

__all__ = [
    # Entry points
    "derive",
    "derive_bytes",
    # Helper functions
    "adjustment_ops",
    "apply_adjustments",
    "compute_geometry",
    "decode_image",
    "encode_image",
    "full_frame_spec",
    "place_on_canvas",
    "rotated_bounds",
    "validate_crop",
    # Configuration
    "DEFAULT_QUALITY",
    "FILTER_PRESETS",
    # Models
    "CanvasGeometry",
    "CropRect",
    "DerivedImage",
    "EditSpec",
    "FilterOp",
    "FilterPreset",
    "OutputMimeType",
]
