"""HTTP fetcher implementation using httpx."""

import httpx

from ..config import DEFAULT_MAX_CONCURRENT_REQUESTS, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from ..errors import FetchError
from .protocols import Response


class HttpFetcher:
    """Async HTTP fetcher sharing one httpx client across a crawl.

    The pool holds up to ``max_connections`` sockets. Requests beyond that
    queue for a free connection without a deadline; ``timeout`` covers
    connect, read and write only, so the caller's own limiter decides how
    many requests are in flight.

    The client is built on construction. An unusable environment (for
    example a malformed ``ALL_PROXY``) raises ``ValueError`` here rather
    than on the first request.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        max_connections: int | None = DEFAULT_MAX_CONCURRENT_REQUESTS,
        max_keepalive_connections: int = 20,
    ):
        self.timeout = httpx.Timeout(timeout, pool=None)
        self.user_agent = user_agent
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._client: httpx.AsyncClient | None = self._build_client()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            limits=self.limits,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
        )

    async def fetch(self, url: str) -> Response:
        """Fetch a URL and return the response.

        Transport errors are raised as FetchError; any status code is returned.
        """
        if self._client is None:
            self._client = self._build_client()
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e
        return Response(
            url=str(resp.url),
            status=resp.status_code,
            content=resp.content,
            headers=dict(resp.headers),
        )

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
