"""
Watermark component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.domain.errors import ValidationIssue

WatermarkType = Literal["text", "logo"]
WatermarkSize = Literal["small", "medium", "large"]
WatermarkPosition = Literal[
    "top-left",
    "top-center",
    "top-right",
    "center-left",
    "center",
    "center-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
]
HorizontalAnchor = Literal["left", "center", "right"]
VerticalAnchor = Literal["top", "center", "bottom"]
TextAlign = Literal["start", "center", "end"]
TextBaseline = Literal["top", "middle", "bottom"]


class WatermarkSettings(BaseModel):
    """
    Process-wide watermark configuration.

    Read once per render and passed to the compositor as a value; written
    only through WatermarkSettingsStore.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    type: WatermarkType = "text"
    text: str = "© My Photography"
    logo_url: str | None = None
    position: WatermarkPosition = "bottom-right"
    opacity: int = Field(default=30, ge=0, le=100)  # percent
    size: WatermarkSize = "medium"
    padding: int = Field(default=20, ge=0)  # px at the reference width


@dataclass(frozen=True)
class Anchor:
    """Resolved anchor point plus how the mark aligns to it."""

    x: float
    y: float
    align: TextAlign
    baseline: TextBaseline


# --- Settings store I/O ---


@dataclass(frozen=True)
class UpdateWatermarkInput:
    """Partial settings; unspecified fields keep their current value."""

    patch: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateWatermarkOutput:
    """Output from updating watermark settings."""

    settings: WatermarkSettings | None = None
    errors: list[ValidationIssue] = field(default_factory=list)
    success: bool = True
