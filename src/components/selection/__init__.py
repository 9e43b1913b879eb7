"""
Selection component - Multi-select over the combined listing.
"""

from .component import SelectionEngine
from .models import SelectionSnapshot, ToggleMode, ToggleResult

__all__ = [
    "SelectionEngine",
    "SelectionSnapshot",
    "ToggleMode",
    "ToggleResult",
]
