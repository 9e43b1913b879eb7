"""
Object storage interfaces.

Protocol-based interfaces for writing derived bytes to a reserved target and
fetching remote images (watermark logos).
Implementations: local filesystem, in-memory (tests), HTTP (presigned PUT).

Invariants:
- A write stores exactly size_bytes bytes under the target key, or fails
- Writes never create metadata records; that is the repository's job
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.core.ports.library import WriteTarget


@dataclass
class StoredObject:
    """Metadata for a stored object."""

    key: str
    size_bytes: int
    content_type: str


class TransferPort(Protocol):
    """
    Byte transfer interface (phase two of an upload).

    Receives a WriteTarget issued by the repository's reserve_upload().
    """

    async def write(
        self,
        target: WriteTarget,
        data: bytes,
        mime_type: str,
        size_bytes: int,
    ) -> StoredObject:
        """
        Write bytes to the target location.

        Args:
            target: Write target issued at reserve time
            data: Encoded bytes
            mime_type: Declared Content-Type
            size_bytes: Declared size; must equal len(data)

        Returns:
            StoredObject describing what was written

        Raises:
            StorageError: If the write failed
        """
        ...


class LogoSourcePort(Protocol):
    """Fetches logo images referenced by watermark settings."""

    async def fetch(self, url: str) -> bytes:
        """
        Fetch image bytes.

        Raises:
            StorageError: If the logo could not be fetched
        """
        ...


class StorageError(Exception):
    """Base class for storage errors."""


class KeyNotFoundError(StorageError):
    """Raised when key doesn't exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key not found: {key}")


class SizeMismatchError(StorageError):
    """Raised when the written byte count differs from the declared size."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Size mismatch: declared {expected} bytes, got {actual}")


class TransferFailedError(StorageError):
    """Raised when the remote store rejected or dropped the write."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Transfer of {key} failed: {reason}")
