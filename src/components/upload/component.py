"""
Upload component - Two-phase commit for new or replaced assets.

Phase one reserves a metadata record and a write target in the repository;
phase two writes the bytes to the target.

Invariants:
- Requests are validated (MIME allowlist, size limit, declared size) before
  anything is reserved
- A transfer failure after a successful reserve raises PartialUploadError
  carrying the reservation, so the caller can retry the transfer alone
- Nothing is retried automatically
"""

from __future__ import annotations

import logging
from uuid import UUID

from src.core.ports.library import LibraryRepoPort, Reservation, ReserveRequest
from src.core.ports.storage import SizeMismatchError, TransferPort
from src.domain.entities import Asset
from src.domain.errors import (
    PartialUploadError,
    ReserveError,
    UploadValidationError,
    ValidationIssue,
)

from .models import AssetKindConfig, UploadPhase, UploadResult

logger = logging.getLogger(__name__)

# --- Default Configuration ---

DEFAULT_IMAGE_KIND = AssetKindConfig(
    kind="image",
    allowed_mime_types=["image/jpeg", "image/png", "image/webp", "image/gif"],
    max_upload_bytes=20_000_000,  # 20MB
)


# --- Validation Functions ---


def validate_mime_type(mime_type: str, kind: AssetKindConfig) -> list[ValidationIssue]:
    """
    Validate MIME type against allowlist.

    Returns list of errors (empty if valid).
    """
    if mime_type in kind.allowed_mime_types:
        return []
    return [
        ValidationIssue(
            code="invalid_mime_type",
            message=(
                f"MIME type '{mime_type}' is not allowed. "
                f"Allowed types: {', '.join(sorted(set(kind.allowed_mime_types)))}"
            ),
            field="mime_type",
        )
    ]


def validate_size(size: int, kind: AssetKindConfig) -> list[ValidationIssue]:
    """
    Validate declared size against limits.

    Returns list of errors (empty if valid).
    """
    errors: list[ValidationIssue] = []
    if size <= 0:
        errors.append(
            ValidationIssue(
                code="empty_file",
                message="File is empty",
                field="size_bytes",
            )
        )
    elif size > kind.max_upload_bytes:
        errors.append(
            ValidationIssue(
                code="file_too_large",
                message=(
                    f"File size {size} bytes exceeds maximum of "
                    f"{kind.max_upload_bytes} bytes for {kind.kind}"
                ),
                field="size_bytes",
            )
        )
    return errors


def validate_request(
    request: ReserveRequest,
    kind: AssetKindConfig,
    data: bytes | None = None,
) -> list[ValidationIssue]:
    """All checks that must pass before phase one."""
    errors: list[ValidationIssue] = []
    errors.extend(validate_mime_type(request.mime_type, kind))
    errors.extend(validate_size(request.size_bytes, kind))
    if data is not None and len(data) != request.size_bytes:
        errors.append(
            ValidationIssue(
                code="size_mismatch",
                message=(
                    f"Declared size {request.size_bytes} bytes does not match "
                    f"payload of {len(data)} bytes"
                ),
                field="size_bytes",
            )
        )
    return errors


# --- Coordinator ---


class UploadCoordinator:
    """
    Reserve -> transfer, with typed failure for the in-between state.

    Reservations whose transfer failed are kept as pending, keyed by asset id,
    until a later transfer succeeds. The payload of a failed write is kept
    with it so the retry can run without the caller resending the bytes.
    """

    def __init__(
        self,
        repo: LibraryRepoPort,
        transfer: TransferPort,
        *,
        kind: AssetKindConfig | None = None,
    ) -> None:
        self._repo = repo
        self._transfer = transfer
        self._kind = kind or DEFAULT_IMAGE_KIND
        self._pending: dict[UUID, Reservation] = {}
        self._payloads: dict[UUID, bytes] = {}

    @property
    def kind(self) -> AssetKindConfig:
        return self._kind

    def pending(self) -> list[Reservation]:
        """Reservations still waiting for their bytes."""
        return list(self._pending.values())

    def get_pending(self, asset_id: UUID) -> Reservation | None:
        return self._pending.get(asset_id)

    async def reserve(self, request: ReserveRequest) -> Reservation:
        """
        Phase one: create (or mark for replace) the metadata record.

        Raises:
            UploadValidationError: If the request fails validation.
            ReserveError: If the repository refused the reservation.
        """
        errors = validate_request(request, self._kind)
        if errors:
            raise UploadValidationError(errors)
        try:
            reservation = await self._repo.reserve_upload(request)
        except Exception as e:
            logger.warning("Reserve failed for %s: %s", request.filename, e)
            raise ReserveError(f"Could not reserve {request.filename}: {e}") from e

        logger.info(
            "Reserved asset %s (%s, %d bytes) at %s",
            reservation.asset.id,
            request.mime_type,
            request.size_bytes,
            reservation.target.key,
        )
        return reservation

    async def transfer(self, reservation: Reservation, data: bytes) -> Asset:
        """
        Phase two: write the bytes to the reserved target.

        Raises:
            PartialUploadError: If the write failed; retry with the same
                reservation.
        """
        asset = reservation.asset
        try:
            if len(data) != asset.size_bytes:
                raise SizeMismatchError(asset.size_bytes, len(data))
            await self._transfer.write(reservation.target, data, asset.mime_type, len(data))
        except Exception as e:
            self._pending[asset.id] = reservation
            if len(data) == asset.size_bytes:
                self._payloads[asset.id] = data
            logger.error("Transfer failed for reserved asset %s: %s", asset.id, e)
            raise PartialUploadError(reservation, e) from e

        self._pending.pop(asset.id, None)
        self._payloads.pop(asset.id, None)
        logger.info("Transferred %d bytes for asset %s", len(data), asset.id)
        return asset

    async def upload(self, request: ReserveRequest, data: bytes) -> UploadResult:
        """
        Run both phases.

        Raises:
            UploadValidationError: Nothing was reserved.
            ReserveError: Nothing was reserved.
            PartialUploadError: Record reserved, bytes not written.
        """
        errors = validate_request(request, self._kind, data)
        if errors:
            raise UploadValidationError(errors)
        reservation = await self.reserve(request)
        asset = await self.transfer(reservation, data)
        return UploadResult(asset=asset, reservation=reservation, phase=UploadPhase.TRANSFERRED)

    async def retry_transfer(self, asset_id: UUID, data: bytes | None = None) -> UploadResult:
        """
        Resume a failed upload at phase two.

        Without data, the payload of the failed attempt is written again.

        Raises:
            KeyError: If no pending reservation (or retained payload) exists
                for asset_id.
            PartialUploadError: If the write failed again.
        """
        reservation = self._pending[asset_id]
        if data is None:
            data = self._payloads[asset_id]
        asset = await self.transfer(reservation, data)
        return UploadResult(asset=asset, reservation=reservation, phase=UploadPhase.TRANSFERRED)
