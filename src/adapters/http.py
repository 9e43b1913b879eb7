"""
HTTP adapters (aiohttp).

HttpUploadTarget PUTs bytes to a presigned URL issued at reserve time.
HttpLogoSource fetches watermark logo images.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from src.core.ports.library import WriteTarget
from src.core.ports.storage import (
    SizeMismatchError,
    StorageError,
    StoredObject,
    TransferFailedError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
MAX_LOGO_BYTES = 5_000_000


class HttpUploadTarget:
    """TransferPort that PUTs to the reservation's presigned URL."""

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def write(
        self,
        target: WriteTarget,
        data: bytes,
        mime_type: str,
        size_bytes: int,
    ) -> StoredObject:
        if len(data) != size_bytes:
            raise SizeMismatchError(size_bytes, len(data))

        headers = {"Content-Type": mime_type, "Content-Length": str(size_bytes)}
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.put(target.url, data=data, headers=headers) as response:
                    if response.status >= 400:
                        body = await response.text()
                        raise TransferFailedError(
                            target.key, f"HTTP {response.status}: {body[:200]}"
                        )
        except asyncio.TimeoutError as e:
            raise TransferFailedError(target.key, "timed out") from e
        except aiohttp.ClientError as e:
            raise TransferFailedError(target.key, str(e)) from e

        logger.info("Uploaded %d bytes to %s", size_bytes, target.key)
        return StoredObject(key=target.key, size_bytes=size_bytes, content_type=mime_type)


class HttpLogoSource:
    """LogoSourcePort over HTTP GET."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_bytes: int = MAX_LOGO_BYTES,
    ) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._max_bytes = max_bytes

    async def fetch(self, url: str) -> bytes:
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise StorageError(f"Logo fetch failed: HTTP {response.status} for {url}")
                    data = await response.read()
        except asyncio.TimeoutError as e:
            raise StorageError(f"Timeout fetching logo: {url}") from e
        except aiohttp.ClientError as e:
            raise StorageError(f"Logo fetch failed for {url}: {e}") from e

        if len(data) > self._max_bytes:
            raise StorageError(f"Logo at {url} exceeds {self._max_bytes} bytes")
        logger.debug("Fetched logo (%d bytes) from %s", len(data), url)
        return data
