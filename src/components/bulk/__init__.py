"""
Bulk component - Move and delete over a heterogeneous selection.
"""

from src.domain.folder_tree import ancestor_chain, descendants, ensure_move_allowed

from .component import (
    BulkMutationCoordinator,
    find_non_empty,
    resolve_parent_map,
    run_delete,
    run_move,
)
from .models import (
    BulkOperation,
    BulkResult,
    BulkState,
    DeleteInput,
    ItemFailure,
    MoveInput,
)

__all__ = [
    # Entry points
    "run_delete",
    "run_move",
    # Coordinator
    "BulkMutationCoordinator",
    # Preconditions
    "ancestor_chain",
    "descendants",
    "ensure_move_allowed",
    "find_non_empty",
    "resolve_parent_map",
    # Models
    "BulkOperation",
    "BulkResult",
    "BulkState",
    "DeleteInput",
    "ItemFailure",
    "MoveInput",
]
