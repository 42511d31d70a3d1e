"""Shared per-run state: visited registry and content store.

Both containers are mutated by every traversal branch. Each operation takes
the container's lock for a single dict/set update and never awaits I/O while
holding it.
"""

import asyncio


class VisitedRegistry:
    """Tracks claimed and visited URLs and enforces the page ceiling.

    A URL is *claimed* while a branch is processing it and *visited* once it
    has been fetched and processed. Claims stop sibling branches from fetching
    the same URL concurrently; a claim that ends without a visit is released
    so the URL stays eligible.
    """

    def __init__(self, max_pages: int, max_depth: int):
        self.max_pages = max_pages
        self.max_depth = max_depth
        self._visited: set[str] = set()
        self._claimed: set[str] = set()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._visited)

    def __contains__(self, url: str) -> bool:
        return url in self._visited

    def is_full(self) -> bool:
        return len(self._visited) >= self.max_pages

    def visited(self) -> frozenset[str]:
        return frozenset(self._visited)

    async def try_claim(self, url: str, depth: int) -> bool:
        """Claim a URL for processing. Returns False if it must be skipped."""
        async with self._lock:
            if depth > self.max_depth or self.is_full():
                return False
            if url in self._visited or url in self._claimed:
                return False
            self._claimed.add(url)
            return True

    async def mark_visited(self, url: str) -> bool:
        """Record a URL as visited. Returns True if the page ceiling is reached."""
        async with self._lock:
            self._claimed.discard(url)
            self._visited.add(url)
            return self.is_full()

    async def release(self, url: str):
        """Drop a claim without marking the URL visited."""
        async with self._lock:
            self._claimed.discard(url)


class ContentStore:
    """Insertion-ordered map of URL to fetched text."""

    def __init__(self):
        self._content: dict[str, str] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._content)

    def __contains__(self, url: str) -> bool:
        return url in self._content

    async def add(self, url: str, content: str) -> bool:
        """Store content for a URL. Returns False if the URL was already stored."""
        async with self._lock:
            if url in self._content:
                return False
            self._content[url] = content
            return True

    def snapshot(self) -> dict[str, str]:
        return dict(self._content)
