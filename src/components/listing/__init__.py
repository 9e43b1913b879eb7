"""
Listing component - Combined folder+asset listing of one directory.
"""

from .component import build_combined_listing, run_load_listing
from .models import CombinedListing, ListingOutput, LoadListingInput

__all__ = [
    # Entry points
    "build_combined_listing",
    "run_load_listing",
    # Models
    "CombinedListing",
    "ListingOutput",
    "LoadListingInput",
]
