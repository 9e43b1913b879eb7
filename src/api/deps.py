import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.clock import SystemClock
from src.adapters.fs.filestore import FileSystemStore
from src.adapters.http import HttpLogoSource, HttpUploadTarget
from src.adapters.sqlite.repos import SQLiteLibraryRepo, SQLiteWatermarkSettingsRepo
from src.components.bulk import BulkMutationCoordinator
from src.components.edit import MediaEditService
from src.components.upload import AssetKindConfig, UploadCoordinator
from src.components.watermark import WatermarkSettingsStore
from src.core.ports.storage import LogoSourcePort, TransferPort
from src.rules.loader import load_rules
from src.rules.models import LibraryRules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("LIBRARY_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "library.db")
        self.media_dir = self.data_dir / "media"
        self.rules_path = self.base_dir / "rules.yaml"
        self.migrations_dir = self.base_dir / "migrations"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> LibraryRules:
    return load_rules(settings.rules_path)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Repos / Adapters ---
def get_library_repo(
    settings: Settings = Depends(get_settings),
    rules: LibraryRules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> SQLiteLibraryRepo:
    return SQLiteLibraryRepo(
        settings.db_path,
        clock=clock,
        public_base_url=rules.storage.public_base_url,
    )


def get_transfer(
    settings: Settings = Depends(get_settings),
    rules: LibraryRules = Depends(get_rules),
) -> TransferPort:
    if rules.storage.backend == "http":
        return HttpUploadTarget(timeout=rules.storage.transfer_timeout_seconds)
    return FileSystemStore(base_path=settings.media_dir)


def get_logo_source(rules: LibraryRules = Depends(get_rules)) -> LogoSourcePort:
    return HttpLogoSource(timeout=rules.storage.transfer_timeout_seconds)


# Watermark settings store singleton; its TTL cache spans requests.
_watermark_store_instance: WatermarkSettingsStore | None = None


def get_watermark_store(
    settings: Settings = Depends(get_settings),
    rules: LibraryRules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> WatermarkSettingsStore:
    """Get watermark settings store singleton."""
    global _watermark_store_instance
    if _watermark_store_instance is None:
        _watermark_store_instance = WatermarkSettingsStore(
            SQLiteWatermarkSettingsRepo(settings.db_path),
            clock=clock,
            ttl_seconds=rules.watermark.settings_cache_ttl_seconds,
        )
    return _watermark_store_instance


# --- Component Services ---
# Bulk coordinator singleton; its re-entrancy guard spans requests.
_bulk_coordinator_instance: BulkMutationCoordinator | None = None


def get_bulk_coordinator(
    repo: SQLiteLibraryRepo = Depends(get_library_repo),
) -> BulkMutationCoordinator:
    """Get bulk mutation coordinator singleton."""
    global _bulk_coordinator_instance
    if _bulk_coordinator_instance is None:
        _bulk_coordinator_instance = BulkMutationCoordinator(repo)
    return _bulk_coordinator_instance


# Upload coordinator singleton; pending reservations outlive the request.
_upload_coordinator_instance: UploadCoordinator | None = None


def get_upload_coordinator(
    repo: SQLiteLibraryRepo = Depends(get_library_repo),
    transfer: TransferPort = Depends(get_transfer),
    rules: LibraryRules = Depends(get_rules),
) -> UploadCoordinator:
    """Get upload coordinator singleton."""
    global _upload_coordinator_instance
    if _upload_coordinator_instance is None:
        kind = AssetKindConfig(
            kind="image",
            allowed_mime_types=rules.uploads.allowlist_mime_types,
            max_upload_bytes=rules.uploads.max_upload_bytes,
        )
        _upload_coordinator_instance = UploadCoordinator(repo, transfer, kind=kind)
    return _upload_coordinator_instance


def get_edit_service(
    repo: SQLiteLibraryRepo = Depends(get_library_repo),
    uploader: UploadCoordinator = Depends(get_upload_coordinator),
    watermark_store: WatermarkSettingsStore = Depends(get_watermark_store),
    logo_source: LogoSourcePort = Depends(get_logo_source),
    rules: LibraryRules = Depends(get_rules),
) -> MediaEditService:
    return MediaEditService(
        repo,
        uploader,
        watermark_store,
        logo_source=logo_source,
        mime_type=rules.derive.output_mime_type,  # type: ignore[arg-type]
        quality=rules.derive.quality,
        reference_width=rules.watermark.reference_width,
    )
