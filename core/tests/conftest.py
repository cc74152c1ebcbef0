"""Shared test fixtures for core tests."""

from __future__ import annotations

import io
import tarfile
from collections import Counter
from typing import TYPE_CHECKING, Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

if TYPE_CHECKING:
    from collections.abc import Callable


def build_tarball(files: dict[str, bytes]) -> bytes:
    """Build an in-memory .tar.gz containing ``files`` (path -> content)."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for path, content in files.items():
            info = tarfile.TarInfo(path)
            info.size = len(content)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


class FakeArchiveHost:
    """Local HTTP server serving scripted responses per path.

    Each path is given a list of (status, body) responses that are served in
    order; the last one repeats. Unknown paths get GitHub's 404 body.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[tuple[int, bytes]]] = {}
        self.hits: Counter[str] = Counter()
        self._server: TestServer | None = None

    def add(self, path: str, *responses: tuple[int, bytes]) -> str:
        """Script the responses for ``path``; returns its URL path."""
        self.routes[path] = list(responses)
        return path

    def url(self, path: str) -> str:
        assert self._server is not None
        return str(self._server.make_url(path))

    async def _handle(self, request: web.Request) -> web.Response:
        path = request.path
        self.hits[path] += 1
        responses = self.routes.get(path)
        if not responses:
            return web.Response(status=404, body=b"404: Not Found")
        status, body = responses[min(self.hits[path], len(responses)) - 1]
        return web.Response(status=status, body=body)

    async def __aenter__(self) -> FakeArchiveHost:
        app = web.Application()
        app.router.add_route("GET", "/{tail:.*}", self._handle)
        self._server = TestServer(app)
        await self._server.start_server()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        assert self._server is not None
        await self._server.close()


@pytest.fixture
def make_tarball() -> Callable[[dict[str, bytes]], bytes]:
    """Factory building .tar.gz bytes from a path -> content mapping."""
    return build_tarball


@pytest.fixture
def archive_host() -> FakeArchiveHost:
    """A fresh, not yet started, fake archive host."""
    return FakeArchiveHost()


# Nothing listens on the discard port on test machines; connecting fails fast.
UNREACHABLE_URL = "http://127.0.0.1:9/plugin.tar.gz"


@pytest.fixture
def unreachable_url() -> str:
    """URL whose connection is refused."""
    return UNREACHABLE_URL
