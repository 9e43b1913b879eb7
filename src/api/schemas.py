from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from src.components.bulk import BulkResult
from src.domain.entities import Asset, Folder, SelectionKind
from src.domain.errors import PartialUploadError, UploadValidationError


# --- Listing ---
class ListingRow(BaseModel):
    kind: SelectionKind
    id: UUID
    name: str
    created_at: datetime
    # folder rows
    parent_id: UUID | None = None
    child_count: int | None = None
    asset_count: int | None = None
    # asset rows
    url: str | None = None
    mime_type: str | None = None
    size_bytes: int | None = None
    width: int | None = None
    height: int | None = None
    alt: str | None = None
    tags: list[str] = []

    @classmethod
    def from_item(cls, item: Folder | Asset) -> "ListingRow":
        if isinstance(item, Folder):
            return cls(
                kind="folder",
                id=item.id,
                name=item.name,
                created_at=item.created_at,
                parent_id=item.parent_id,
                child_count=item.child_count,
                asset_count=item.asset_count,
            )
        return cls(
            kind="asset",
            id=item.id,
            name=item.filename,
            created_at=item.created_at,
            parent_id=item.folder_id,
            url=item.url,
            mime_type=item.mime_type,
            size_bytes=item.size_bytes,
            width=item.width,
            height=item.height,
            alt=item.alt,
            tags=[t.name for t in item.tags],
        )


class ListingResponse(BaseModel):
    folder_id: UUID | None
    folder_count: int
    asset_count: int
    rows: list[ListingRow]


# --- Folders ---
class FolderCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    parent_id: UUID | None = None


class FolderResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    parent_id: UUID | None
    child_count: int
    asset_count: int
    created_at: datetime


# --- Bulk ---
class BulkMoveRequest(BaseModel):
    target_folder_id: UUID | None = None  # None = library root
    folder_ids: list[UUID] = []
    asset_ids: list[UUID] = []


class BulkDeleteRequest(BaseModel):
    folder_ids: list[UUID] = []
    asset_ids: list[UUID] = []
    recursive: bool = False


class BulkFailureModel(BaseModel):
    kind: SelectionKind
    id: UUID
    message: str


class BulkResultResponse(BaseModel):
    operation: Literal["move", "delete"]
    status: str
    succeeded: int
    failed: int
    total: int
    failures: list[BulkFailureModel]

    @classmethod
    def from_result(cls, result: BulkResult) -> "BulkResultResponse":
        return cls(
            operation=result.operation,
            status=result.status.value,
            succeeded=result.succeeded,
            failed=result.failed,
            total=result.total,
            failures=[
                BulkFailureModel(kind=f.key.kind, id=f.key.id, message=f.message)
                for f in result.failures
            ],
        )


# --- Assets / Edit ---
class AssetResponse(BaseModel):
    id: UUID
    filename: str
    url: str
    mime_type: str
    size_bytes: int
    width: int | None = None
    height: int | None = None
    alt: str | None = None
    folder_id: UUID | None = None
    tags: list[str] = []
    created_at: datetime

    @classmethod
    def from_asset(cls, asset: Asset) -> "AssetResponse":
        return cls(
            id=asset.id,
            filename=asset.filename,
            url=asset.url,
            mime_type=asset.mime_type,
            size_bytes=asset.size_bytes,
            width=asset.width,
            height=asset.height,
            alt=asset.alt,
            folder_id=asset.folder_id,
            tags=[t.name for t in asset.tags],
            created_at=asset.created_at,
        )


class EditResponse(BaseModel):
    asset: AssetResponse
    source_asset_id: UUID
    is_new: bool
    watermarked: bool


# --- Error details ---
def issue_details(e: UploadValidationError) -> list[dict[str, Any]]:
    return [{"code": i.code, "message": i.message, "field": i.field} for i in e.issues]


def partial_upload_detail(e: PartialUploadError) -> dict[str, str]:
    """502 body for a reserved record whose bytes were not written."""
    return {"message": str(e), "asset_id": str(e.asset_id)}
