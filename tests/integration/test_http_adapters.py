"""
aiohttp adapters against a local aiohttp test server.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from aiohttp import test_utils, web

from src.adapters.http import HttpLogoSource, HttpUploadTarget
from src.core.ports.library import WriteTarget
from src.core.ports.storage import SizeMismatchError, StorageError, TransferFailedError

RECEIVED = web.AppKey("received", dict[str, bytes])


@pytest.fixture
async def server() -> AsyncIterator[test_utils.TestServer]:
    received: dict[str, bytes] = {}

    async def put_object(request: web.Request) -> web.Response:
        name = request.match_info["name"]
        if name == "forbidden.jpg":
            return web.Response(status=403, text="signature expired")
        received[name] = await request.read()
        return web.Response(status=200)

    async def get_logo(request: web.Request) -> web.Response:
        return web.Response(body=b"x" * 64, content_type="image/png")

    app = web.Application()
    app[RECEIVED] = received
    app.router.add_put("/upload/{name}", put_object)
    app.router.add_get("/logo.png", get_logo)

    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


class TestHttpUploadTarget:
    @pytest.mark.asyncio
    async def test_put(self, server: test_utils.TestServer) -> None:
        target = WriteTarget(key="media/a.jpg", url=str(server.make_url("/upload/a.jpg")))

        stored = await HttpUploadTarget().write(target, b"12345", "image/jpeg", 5)

        assert stored.key == "media/a.jpg"
        assert stored.size_bytes == 5
        assert server.app[RECEIVED]["a.jpg"] == b"12345"

    @pytest.mark.asyncio
    async def test_rejected_put(self, server: test_utils.TestServer) -> None:
        target = WriteTarget(
            key="media/forbidden.jpg", url=str(server.make_url("/upload/forbidden.jpg"))
        )

        with pytest.raises(TransferFailedError, match="HTTP 403"):
            await HttpUploadTarget().write(target, b"1", "image/jpeg", 1)

    @pytest.mark.asyncio
    async def test_size_checked_before_request(self, server: test_utils.TestServer) -> None:
        target = WriteTarget(key="media/a.jpg", url=str(server.make_url("/upload/a.jpg")))

        with pytest.raises(SizeMismatchError):
            await HttpUploadTarget().write(target, b"123", "image/jpeg", 5)
        assert server.app[RECEIVED] == {}

    @pytest.mark.asyncio
    async def test_unreachable_host(self) -> None:
        target = WriteTarget(key="k", url="http://127.0.0.1:9/upload")

        with pytest.raises(TransferFailedError):
            await HttpUploadTarget(timeout=2).write(target, b"1", "image/jpeg", 1)


class TestHttpLogoSource:
    @pytest.mark.asyncio
    async def test_fetch(self, server: test_utils.TestServer) -> None:
        data = await HttpLogoSource().fetch(str(server.make_url("/logo.png")))
        assert data == b"x" * 64

    @pytest.mark.asyncio
    async def test_not_found(self, server: test_utils.TestServer) -> None:
        with pytest.raises(StorageError, match="HTTP 404"):
            await HttpLogoSource().fetch(str(server.make_url("/missing.png")))

    @pytest.mark.asyncio
    async def test_too_large(self, server: test_utils.TestServer) -> None:
        with pytest.raises(StorageError, match="exceeds"):
            await HttpLogoSource(max_bytes=10).fetch(str(server.make_url("/logo.png")))
