"""
Edit component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from src.components.derive.models import EditSpec
from src.domain.entities import Asset


@dataclass(frozen=True)
class SaveEditInput:
    """Input for saving an edited copy (or overwrite) of an asset."""

    asset_id: UUID
    source: bytes
    spec: EditSpec
    save_as_new: bool = True
    new_filename: str | None = None
    apply_watermark: bool = True


@dataclass(frozen=True)
class SaveEditOutput:
    """Output of a completed edit."""

    asset: Asset
    source_asset_id: UUID
    is_new: bool
    width: int
    height: int
    watermarked: bool = False
