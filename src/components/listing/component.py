"""
Listing component - Combined folder+asset listing of one directory.

Provides the addressable space for range selection.

Invariants:
- Folders come before assets
- Each input's relative order is preserved
- Pure: equal inputs give equal listings (re-renders never reorder rows)
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from src.core.ports.library import LibraryRepoPort
from src.domain.entities import Asset, Folder

from .models import CombinedListing, ListingOutput, LoadListingInput


def build_combined_listing(
    subfolders: Iterable[Folder],
    files: Iterable[Asset],
) -> CombinedListing:
    """Merge subfolders and files into one listing, folders first."""
    return CombinedListing(rows=(*subfolders, *files))


async def run_load_listing(
    inp: LoadListingInput,
    *,
    repo: LibraryRepoPort,
) -> ListingOutput:
    """
    Fetch a directory's subfolders and filtered assets and combine them.

    Args:
        inp: Directory id and asset filters.
        repo: Library repository port.

    Returns:
        ListingOutput with the combined listing.
    """
    folders, assets = await asyncio.gather(
        repo.list_folders(inp.folder_id),
        repo.list_assets(inp.folder_id, inp.filters),
    )
    listing = build_combined_listing(folders, assets)
    return ListingOutput(
        listing=listing,
        folder_id=inp.folder_id,
        folder_count=len(folders),
        asset_count=len(assets),
    )
