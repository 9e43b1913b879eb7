"""
Edit component - Derive an edited image and store it as a new or replaced asset.

Flow: load watermark settings once -> derive (crop, rotate, adjust, filter)
-> composite the mark -> reserve -> transfer.

Invariants:
- Watermark settings are read once per edit and passed down as a value
- save_as_new creates a new record in the original's folder, copying its alt
  text and tags; otherwise the original record is replaced in place
- Failures keep the typed errors of the stage that raised them
"""

from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from PIL import Image

from src.components.derive import DEFAULT_QUALITY, EditSpec, decode_image, derive_bytes
from src.components.derive.models import OutputMimeType
from src.components.upload import ReserveRequest, UploadCoordinator
from src.components.watermark import REFERENCE_WIDTH, WatermarkSettings, WatermarkSettingsStore
from src.core.ports.library import LibraryRepoPort
from src.core.ports.storage import LogoSourcePort, StorageError
from src.domain.entities import Asset
from src.domain.errors import AssetNotFoundError, DecodeError
from src.domain.naming import edited_filename, with_extension

from .models import SaveEditInput, SaveEditOutput

logger = logging.getLogger(__name__)


class MediaEditService:
    """Runs one edit end to end."""

    def __init__(
        self,
        repo: LibraryRepoPort,
        uploader: UploadCoordinator,
        watermark_store: WatermarkSettingsStore,
        *,
        logo_source: LogoSourcePort | None = None,
        mime_type: OutputMimeType = "image/jpeg",
        quality: int = DEFAULT_QUALITY,
        reference_width: int = REFERENCE_WIDTH,
    ) -> None:
        self._repo = repo
        self._uploader = uploader
        self._watermark_store = watermark_store
        self._logo_source = logo_source
        self._mime_type = mime_type
        self._quality = quality
        self._reference_width = reference_width

    async def save_edit(
        self,
        asset_id: UUID,
        source_bytes: bytes,
        spec: EditSpec,
        *,
        save_as_new: bool = True,
        new_filename: str | None = None,
        apply_watermark: bool = True,
    ) -> SaveEditOutput:
        """
        Derive and store an edited image.

        Raises:
            AssetNotFoundError: If asset_id does not exist.
            DecodeError: If source_bytes is not a readable image.
            InvalidCropError: If the crop leaves the rotated canvas.
            UploadValidationError / ReserveError: Nothing was stored.
            PartialUploadError: Record reserved, bytes not written.
        """
        original = await self._repo.get_asset(asset_id)
        if original is None:
            raise AssetNotFoundError(asset_id)

        watermark = self._resolve_watermark(spec, apply_watermark)
        logo = await self._load_logo(watermark)
        effective = spec.model_copy(update={"watermark": watermark})

        derived = await asyncio.to_thread(
            derive_bytes,
            source_bytes,
            effective,
            mime_type=self._mime_type,
            quality=self._quality,
            logo=logo,
            reference_width=self._reference_width,
        )

        request = self._build_request(
            original, derived.mime_type, derived.size_bytes, derived.width, derived.height,
            save_as_new=save_as_new, new_filename=new_filename,
        )
        result = await self._uploader.upload(request, derived.data)

        logger.info(
            "Saved edit of %s as %s (%s, %dx%d)",
            asset_id,
            result.asset.id,
            "new" if result.is_new else "overwrite",
            derived.width,
            derived.height,
        )
        return SaveEditOutput(
            asset=result.asset,
            source_asset_id=asset_id,
            is_new=result.is_new,
            width=derived.width,
            height=derived.height,
            watermarked=_mark_applied(watermark, logo),
        )

    def _resolve_watermark(
        self, spec: EditSpec, apply_watermark: bool
    ) -> WatermarkSettings | None:
        if not apply_watermark:
            return None
        if spec.watermark is not None:
            return spec.watermark
        settings = self._watermark_store.load()
        return settings if settings.enabled else None

    async def _load_logo(self, settings: WatermarkSettings | None) -> Image.Image | None:
        if settings is None or not settings.enabled or settings.type != "logo":
            return None
        if not settings.logo_url or self._logo_source is None:
            logger.warning("Logo watermark enabled without a fetchable logo_url")
            return None
        try:
            data = await self._logo_source.fetch(settings.logo_url)
        except StorageError as e:
            logger.warning("Logo fetch failed; saving without the mark: %s", e)
            return None
        try:
            return decode_image(data)
        except DecodeError:
            logger.warning("Logo at %s is not a readable image; skipping", settings.logo_url)
            return None

    @staticmethod
    def _build_request(
        original: Asset,
        mime_type: str,
        size_bytes: int,
        width: int,
        height: int,
        *,
        save_as_new: bool,
        new_filename: str | None,
    ) -> ReserveRequest:
        if save_as_new:
            filename = with_extension(new_filename or edited_filename(original.filename), mime_type)
            return ReserveRequest(
                filename=filename,
                mime_type=mime_type,
                size_bytes=size_bytes,
                width=width,
                height=height,
                folder_id=original.folder_id,
                alt=original.alt,
                tag_ids=tuple(tag.id for tag in original.tags),
            )
        return ReserveRequest(
            filename=with_extension(original.filename, mime_type),
            mime_type=mime_type,
            size_bytes=size_bytes,
            width=width,
            height=height,
            folder_id=original.folder_id,
            replace_asset_id=original.id,
            alt=original.alt,
        )


def _mark_applied(settings: WatermarkSettings | None, logo: Image.Image | None) -> bool:
    if settings is None or not settings.enabled:
        return False
    return settings.type != "logo" or logo is not None


async def run_save_edit(inp: SaveEditInput, *, service: MediaEditService) -> SaveEditOutput:
    """Entry point for saving an edit."""
    return await service.save_edit(
        inp.asset_id,
        inp.source,
        inp.spec,
        save_as_new=inp.save_as_new,
        new_filename=inp.new_filename,
        apply_watermark=inp.apply_watermark,
    )
