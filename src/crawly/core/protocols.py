"""Protocol definitions for crawler components."""

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass
class Response:
    """HTTP response container."""

    url: str
    status: int
    content: bytes
    headers: dict[str, str]

    @property
    def text(self) -> str:
        """Decode content as UTF-8."""
        return self.content.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


class Fetcher(Protocol):
    """Protocol for URL fetchers.

    Implementations raise :class:`crawly.errors.FetchError` on network failure.
    Non-2xx responses are returned, not raised.
    """

    async def fetch(self, url: str) -> Response:
        """Fetch a URL and return the response."""
        ...


class LinkExtractor(Protocol):
    def __call__(self, html: str) -> Sequence[str]:
        """Return raw href values found in an HTML document."""
        ...


class RobotsMatcher(Protocol):
    def __call__(self, robots_text: str, user_agent: str, url: str) -> bool:
        """Return True if ``user_agent`` may fetch ``url`` under ``robots_text``."""
        ...


class MimeSniffer(Protocol):
    def __call__(self, payload: bytes) -> str | None:
        """Return the sniffed media type, or None when it cannot be identified."""
        ...


class UrlResolver(Protocol):
    def __call__(self, base: str, relative: str) -> str:
        """Resolve ``relative`` against ``base``; raise InvalidUrl on failure."""
        ...
