"""
Library API routes.

Combined listing, folder creation and bulk move/delete over a selection.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.deps import get_bulk_coordinator, get_library_repo
from src.api.schemas import (
    BulkDeleteRequest,
    BulkMoveRequest,
    BulkResultResponse,
    FolderCreateRequest,
    FolderResponse,
    ListingResponse,
    ListingRow,
)
from src.components.bulk import BulkMutationCoordinator
from src.components.listing import LoadListingInput, run_load_listing
from src.core.ports.library import AssetFilters
from src.domain.entities import SortField, SortOrder
from src.domain.errors import (
    BulkOperationInProgressError,
    CycleError,
    FolderNotFoundError,
    NotEmptyError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/listing", response_model=ListingResponse)
async def get_listing(
    folder_id: UUID | None = None,
    search: str | None = None,
    tags: list[str] = Query(default=[]),
    mime_type: str | None = None,
    sort_by: SortField = "created_at",
    sort_order: SortOrder = "desc",
    repo: Any = Depends(get_library_repo),
) -> ListingResponse:
    """Folders then assets of one directory (root when folder_id is omitted)."""
    if folder_id is not None and await repo.get_folder(folder_id) is None:
        raise HTTPException(status_code=404, detail="Folder not found")

    filters = AssetFilters(
        search=search or None,
        tags=tuple(tags),
        mime_type_prefix=mime_type or None,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = await run_load_listing(LoadListingInput(folder_id=folder_id, filters=filters), repo=repo)
    return ListingResponse(
        folder_id=result.folder_id,
        folder_count=result.folder_count,
        asset_count=result.asset_count,
        rows=[ListingRow.from_item(row) for row in result.listing.rows],
    )


@router.post("/folders", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    req: FolderCreateRequest,
    repo: Any = Depends(get_library_repo),
) -> FolderResponse:
    """Create a folder under parent_id (root when omitted)."""
    try:
        folder = await repo.create_folder(req.name, req.parent_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Parent folder not found") from None
    return FolderResponse(**folder.model_dump(exclude={"sort_order"}))


@router.post("/bulk/move", response_model=BulkResultResponse)
async def bulk_move(
    req: BulkMoveRequest,
    coordinator: BulkMutationCoordinator = Depends(get_bulk_coordinator),
) -> BulkResultResponse:
    """Move the selected folders and assets into target_folder_id."""
    try:
        result = await coordinator.move(
            req.target_folder_id,
            folder_ids=req.folder_ids,
            asset_ids=req.asset_ids,
        )
    except CycleError as e:
        raise HTTPException(
            status_code=409,
            detail={"message": str(e), "folder_id": str(e.offending_folder_id)},
        ) from e
    except FolderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except BulkOperationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return BulkResultResponse.from_result(result)


@router.post("/bulk/delete", response_model=BulkResultResponse)
async def bulk_delete(
    req: BulkDeleteRequest,
    coordinator: BulkMutationCoordinator = Depends(get_bulk_coordinator),
) -> BulkResultResponse:
    """Delete the selected folders and assets; recursive must be confirmed."""
    try:
        result = await coordinator.delete(
            recursive=req.recursive,
            folder_ids=req.folder_ids,
            asset_ids=req.asset_ids,
        )
    except NotEmptyError as e:
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(e),
                "folder_ids": [str(fid) for fid in e.folder_ids],
            },
        ) from e
    except BulkOperationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return BulkResultResponse.from_result(result)
