"""
Upload component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.core.ports.library import Reservation, ReserveRequest, WriteTarget
from src.domain.entities import Asset

__all__ = [
    "AssetKindConfig",
    "Reservation",
    "ReserveRequest",
    "UploadPhase",
    "UploadResult",
    "WriteTarget",
]


class UploadPhase(str, Enum):
    """
    Two-phase upload protocol.

    RESERVED: metadata record exists, bytes not yet written.
    TRANSFERRED: bytes written; the record is consistent.
    """

    RESERVED = "reserved"
    TRANSFERRED = "transferred"


@dataclass(frozen=True)
class AssetKindConfig:
    """Upload limits for one kind of media."""

    kind: str
    allowed_mime_types: list[str]
    max_upload_bytes: int


@dataclass(frozen=True)
class UploadResult:
    """Output of a completed upload."""

    asset: Asset
    reservation: Reservation
    phase: UploadPhase = UploadPhase.TRANSFERRED

    @property
    def is_new(self) -> bool:
        return self.reservation.is_new
