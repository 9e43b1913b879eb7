"""
Upload component - Two-phase commit (reserve, then transfer) for assets.
"""

from .component import (
    DEFAULT_IMAGE_KIND,
    UploadCoordinator,
    validate_mime_type,
    validate_request,
    validate_size,
)
from .models import (
    AssetKindConfig,
    Reservation,
    ReserveRequest,
    UploadPhase,
    UploadResult,
    WriteTarget,
)

__all__ = [
    # Coordinator
    "UploadCoordinator",
    # Validation
    "validate_mime_type",
    "validate_request",
    "validate_size",
    # Configuration
    "DEFAULT_IMAGE_KIND",
    "AssetKindConfig",
    # Models
    "Reservation",
    "ReserveRequest",
    "UploadPhase",
    "UploadResult",
    "WriteTarget",
]
