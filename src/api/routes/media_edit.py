"""
Media edit API routes.

Accepts the source bytes plus a JSON edit spec and stores the derived image
as a new asset or over the original.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError

from src.api.deps import get_edit_service, get_rules
from src.api.schemas import (
    AssetResponse,
    EditResponse,
    issue_details,
    partial_upload_detail,
)
from src.components.derive import EditSpec
from src.components.edit import MediaEditService
from src.core.ports.storage import StorageError
from src.domain.errors import (
    AssetNotFoundError,
    DecodeError,
    InvalidCropError,
    PartialUploadError,
    ReserveError,
    UploadValidationError,
)
from src.rules.models import LibraryRules

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{asset_id}/edit", response_model=EditResponse)
async def edit_asset(
    asset_id: UUID,
    file: UploadFile = File(...),
    spec: str = Form(...),
    save_as_new: bool = Form(True),
    filename: str | None = Form(None),
    apply_watermark: bool = Form(True),
    service: MediaEditService = Depends(get_edit_service),
    rules: LibraryRules = Depends(get_rules),
) -> EditResponse:
    """Derive an edited image from the uploaded source and save it."""
    try:
        edit_spec = EditSpec.model_validate_json(spec)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False)) from e

    source = await file.read()
    if len(source) > rules.derive.max_source_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Source exceeds {rules.derive.max_source_bytes} bytes",
        )

    try:
        result = await service.save_edit(
            asset_id,
            source,
            edit_spec,
            save_as_new=save_as_new,
            new_filename=filename or None,
            apply_watermark=apply_watermark,
        )
    except AssetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except (DecodeError, InvalidCropError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except UploadValidationError as e:
        raise HTTPException(status_code=422, detail=issue_details(e)) from e
    except PartialUploadError as e:
        raise HTTPException(status_code=502, detail=partial_upload_detail(e)) from e
    except (ReserveError, StorageError) as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    return EditResponse(
        asset=AssetResponse.from_asset(result.asset),
        source_asset_id=result.source_asset_id,
        is_new=result.is_new,
        watermarked=result.watermarked,
    )

