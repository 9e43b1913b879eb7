# Media library ports (Protocol interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.library import (
    UNSET,
    AssetFilters,
    LibraryRepoPort,
    Reservation,
    ReserveRequest,
    Unset,
    WriteTarget,
)
from src.core.ports.storage import (
    KeyNotFoundError,
    LogoSourcePort,
    SizeMismatchError,
    StorageError,
    StoredObject,
    TransferFailedError,
    TransferPort,
)
from src.core.ports.time import TimePort

__all__ = [
    # Library repository
    "UNSET",
    "AssetFilters",
    "LibraryRepoPort",
    "Reservation",
    "ReserveRequest",
    "Unset",
    "WriteTarget",
    # Storage
    "KeyNotFoundError",
    "LogoSourcePort",
    "SizeMismatchError",
    "StorageError",
    "StoredObject",
    "TransferFailedError",
    "TransferPort",
    # Time
    "TimePort",
]
