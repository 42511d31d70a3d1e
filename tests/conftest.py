"""Shared fixtures: an in-memory fetcher serving a small fake web."""

import asyncio

import pytest

from crawly.config import CrawlConfig
from crawly.core import Response


def html(*links: str, body: str = "") -> str:
    """Build an HTML page linking to ``links``."""
    anchors = "".join(f'<a href="{link}">{link}</a>' for link in links)
    return f"<html><body>{body}{anchors}</body></html>"


class FakeFetcher:
    """Fetcher serving canned responses; unknown URLs get a 404."""

    def __init__(self, pages: dict | None = None, latency: float = 0.0):
        self.pages: dict[str, object] = {}
        self.latency = latency
        self.requests: list[str] = []
        self.active = 0
        self.max_active = 0
        for url, page in (pages or {}).items():
            self.add(url, page)

    def add(self, url: str, page, status: int = 200, headers: dict | None = None):
        if isinstance(page, str):
            page = page.encode("utf-8")
        if isinstance(page, bytes):
            page = Response(url=url, status=status, content=page, headers=headers or {})
        self.pages[url] = page

    def count(self, url: str) -> int:
        return self.requests.count(url)

    async def fetch(self, url: str) -> Response:
        self.requests.append(url)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.latency)
            page = self.pages.get(url)
            if page is None:
                return Response(url=url, status=404, content=b"not found", headers={})
            if isinstance(page, Exception):
                raise page
            return page
        finally:
            self.active -= 1


@pytest.fixture
def fake_web():
    return FakeFetcher()


@pytest.fixture
def config():
    """Fast config: no politeness delay."""
    return CrawlConfig(
        user_agent="TestCrawler",
        max_depth=5,
        max_pages=10,
        max_concurrent_requests=10,
        rate_limit_wait_seconds=0,
    )


class SlowServer:
    """Local HTTP/1.1 server answering every request after ``delay`` seconds."""

    def __init__(self, pages: dict[str, str] | None = None, delay: float = 0.0):
        self.pages = pages or {}
        self.delay = delay
        self.base_url = ""
        self.active = 0
        self.max_active = 0
        self._server: asyncio.AbstractServer | None = None

    async def start(self):
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0, backlog=1024)
        port = self._server.sockets[0].getsockname()[1]
        self.base_url = f"http://127.0.0.1:{port}"

    async def stop(self):
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            head = await reader.readuntil(b"\r\n\r\n")
            path = head.split(b" ", 2)[1].decode("ascii")
            await asyncio.sleep(self.delay)
            body = self.pages.get(path)
            status = "200 OK" if body is not None else "404 Not Found"
            payload = (body if body is not None else "not found").encode("utf-8")
            writer.write(
                f"HTTP/1.1 {status}\r\n"
                f"Content-Type: text/html; charset=utf-8\r\n"
                f"Content-Length: {len(payload)}\r\n"
                f"Connection: close\r\n\r\n".encode("ascii") + payload
            )
            await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            self.active -= 1
            writer.close()


@pytest.fixture
async def slow_server(monkeypatch):
    """A started SlowServer; proxies are cleared so requests stay local."""
    for name in ("ALL_PROXY", "HTTP_PROXY", "HTTPS_PROXY", "all_proxy", "http_proxy", "https_proxy"):
        monkeypatch.delenv(name, raising=False)
    server = SlowServer()
    await server.start()
    yield server
    await server.stop()
