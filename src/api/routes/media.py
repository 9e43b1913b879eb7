"""
Media upload API routes.

New uploads run both phases in one request. A transfer that fails after the
record was reserved answers 502 with the reserved asset id; the transfer
route then writes the bytes without reserving again.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from src.api.deps import get_library_repo, get_upload_coordinator
from src.api.schemas import AssetResponse, issue_details, partial_upload_detail
from src.components.upload import ReserveRequest, UploadCoordinator
from src.domain.errors import PartialUploadError, ReserveError, UploadValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
async def upload_asset(
    file: UploadFile = File(...),
    alt: str | None = Form(None),
    folder_id: UUID | None = Form(None),
    tag_ids: list[UUID] = Form([]),
    width: int | None = Form(None),
    height: int | None = Form(None),
    uploader: UploadCoordinator = Depends(get_upload_coordinator),
    repo: Any = Depends(get_library_repo),
) -> AssetResponse:
    """Upload a new asset into folder_id (root when omitted)."""
    if folder_id is not None and await repo.get_folder(folder_id) is None:
        raise HTTPException(status_code=404, detail="Folder not found")

    data = await file.read()
    request = ReserveRequest(
        filename=file.filename or "unnamed",
        mime_type=file.content_type or "application/octet-stream",
        size_bytes=len(data),
        width=width,
        height=height,
        folder_id=folder_id,
        alt=alt or None,
        tag_ids=tuple(tag_ids),
    )

    try:
        result = await uploader.upload(request, data)
    except UploadValidationError as e:
        raise HTTPException(status_code=422, detail=issue_details(e)) from e
    except PartialUploadError as e:
        raise HTTPException(status_code=502, detail=partial_upload_detail(e)) from e
    except ReserveError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    return AssetResponse.from_asset(result.asset)


@router.post("/{asset_id}/transfer", response_model=AssetResponse)
async def retry_transfer(
    asset_id: UUID,
    file: UploadFile | None = File(None),
    uploader: UploadCoordinator = Depends(get_upload_coordinator),
) -> AssetResponse:
    """
    Write the bytes of a reserved asset whose transfer failed.

    Without a file the payload of the failed attempt is written again.
    """
    data = await file.read() if file is not None else None
    try:
        result = await uploader.retry_transfer(asset_id, data)
    except KeyError:
        raise HTTPException(status_code=404, detail="No pending upload for asset") from None
    except PartialUploadError as e:
        raise HTTPException(status_code=502, detail=partial_upload_detail(e)) from e

    logger.info("Recovered pending upload %s", asset_id)
    return AssetResponse.from_asset(result.asset)
