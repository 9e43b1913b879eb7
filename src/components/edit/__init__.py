"""
Edit component - Save an edited image as a new asset or over the original.
"""

from .component import MediaEditService, run_save_edit
from .models import SaveEditInput, SaveEditOutput

__all__ = [
    # Entry points
    "run_save_edit",
    # Service
    "MediaEditService",
    # Models
    "SaveEditInput",
    "SaveEditOutput",
]
