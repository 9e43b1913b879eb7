from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class UploadsRules(BaseModel):
    max_upload_bytes: int = Field(gt=0)
    allowlist_mime_types: list[str]

class DeriveRules(BaseModel):
    output_mime_type: str = "image/jpeg"
    quality: int = Field(default=95, ge=1, le=100)
    max_source_bytes: int = Field(default=50_000_000, gt=0)

class WatermarkRules(BaseModel):
    reference_width: int = Field(default=1000, gt=0)
    preview_width: int = Field(default=400, gt=0)
    settings_cache_ttl_seconds: float = Field(default=60, ge=0)

class StorageRules(BaseModel):
    backend: str = "local"  # local | http
    public_base_url: str = "/media"
    transfer_timeout_seconds: float = Field(default=60, gt=0)

class LibraryRules(BaseModel):
    project: ProjectRules
    uploads: UploadsRules
    derive: DeriveRules = Field(default_factory=DeriveRules)
    watermark: WatermarkRules = Field(default_factory=WatermarkRules)
    storage: StorageRules = Field(default_factory=StorageRules)
