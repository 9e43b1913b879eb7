"""
Time port.

All internal timestamps are UTC. Injected wherever a component needs "now"
(storage keys, settings cache expiry) so the core stays deterministic.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TimePort(Protocol):
    """Time adapter interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...
