"""
Watermark component port definitions.
"""

from __future__ import annotations

from typing import Any, Protocol


class WatermarkSettingsRepoPort(Protocol):
    """Repository interface for the single stored settings value."""

    def get(self) -> dict[str, Any] | None:
        """Get stored settings values, or None if never saved."""
        ...

    def save(self, values: dict[str, Any]) -> None:
        """Save settings values (upsert)."""
        ...
