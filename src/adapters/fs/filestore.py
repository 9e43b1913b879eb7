import asyncio
import logging
import os
from pathlib import Path

from src.core.ports.library import WriteTarget
from src.core.ports.storage import KeyNotFoundError, SizeMismatchError, StoredObject

logger = logging.getLogger(__name__)


class FileSystemStore:
    """Object store on the local filesystem; also the local TransferPort."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).resolve()
        if not self.base_path.exists():
            os.makedirs(self.base_path, exist_ok=True)

    def _safe_path(self, key: str) -> Path:
        # Prevent traversal
        target = (self.base_path / key).resolve()
        if not target.is_relative_to(self.base_path):
            raise ValueError(f"Path traversal attempt detected: {key}")
        return target

    def save(self, key: str, data: bytes) -> str:
        """Save bytes and return the key relative to the base path."""
        target = self._safe_path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".{target.name}.tmp")
        with open(tmp, "wb") as f:
            f.write(data)
        # Readers never see a half-written file.
        os.replace(tmp, target)
        return str(target.relative_to(self.base_path))

    def get(self, key: str) -> bytes:
        """Retrieve bytes by key. Raises KeyNotFoundError."""
        target = self._safe_path(key)
        if not target.exists():
            raise KeyNotFoundError(key)
        with open(target, "rb") as f:
            return f.read()

    def exists(self, key: str) -> bool:
        return self._safe_path(key).exists()

    def delete(self, key: str) -> None:
        target = self._safe_path(key)
        if target.exists():
            os.remove(target)

    async def write(
        self,
        target: WriteTarget,
        data: bytes,
        mime_type: str,
        size_bytes: int,
    ) -> StoredObject:
        if len(data) != size_bytes:
            raise SizeMismatchError(size_bytes, len(data))
        key = await asyncio.to_thread(self.save, target.key, data)
        logger.debug("Stored %d bytes at %s", size_bytes, key)
        return StoredObject(key=key, size_bytes=size_bytes, content_type=mime_type)
