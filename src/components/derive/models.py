"""
Derive component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.components.watermark.models import WatermarkSettings

FilterPreset = Literal["none", "bw", "vintage", "cinematic", "warm", "cool"]
FilterOpName = Literal["brightness", "contrast", "saturate", "grayscale", "sepia", "hue-rotate"]
OutputMimeType = Literal["image/jpeg", "image/webp", "image/png"]


class CropRect(BaseModel):
    """Crop rectangle in rotated-canvas pixel space (equals source space at 0°)."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    width: int
    height: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class EditSpec(BaseModel):
    """
    One requested transform of a source image.

    Pure value; consumed once to produce output bytes.
    """

    model_config = ConfigDict(frozen=True)

    crop: CropRect
    rotation_degrees: float = 0.0
    brightness: int = Field(default=0, ge=-100, le=100)
    contrast: int = Field(default=0, ge=-100, le=100)
    saturation: int = Field(default=0, ge=-100, le=100)
    filter_preset: FilterPreset = "none"
    watermark: WatermarkSettings | None = None


@dataclass(frozen=True)
class FilterOp:
    """One CSS-style filter operator; amount is a ratio (1.0 = 100%) or degrees."""

    name: FilterOpName
    amount: float


@dataclass(frozen=True)
class CanvasGeometry:
    """Sizes involved in placing the rotated source under the crop."""

    source_width: int
    source_height: int
    rotated_width: float
    rotated_height: float
    canvas_width: int
    canvas_height: int


@dataclass(frozen=True)
class DerivedImage:
    """Encoded output of the pipeline."""

    data: bytes
    mime_type: str
    width: int
    height: int

    @property
    def size_bytes(self) -> int:
        return len(self.data)
