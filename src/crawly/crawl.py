"""Crawler engine with async concurrency."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable

import typer

from .config import CrawlConfig
from .core import Fetcher, HttpFetcher, LinkExtractor, MimeSniffer, Response, RobotsMatcher, UrlResolver
from .errors import CrawlError, CrawlerSetupError, DecodeFailure, InvalidUrl
from .links import extract_links, parse_seed, resolve
from .mime import is_accepted, sniff_mime
from .output import StreamingOutputWriter
from .robots import RobotsEntry, RobotsPolicyCache
from .state import ContentStore, VisitedRegistry

logger = logging.getLogger(__name__)

MITIGATION_HEADER = "cf-mitigated"
MITIGATION_CHALLENGE = "challenge"


async def _polite_wait(seconds: float):
    if seconds > 0:
        await asyncio.sleep(seconds)


def is_challenged(response: Response) -> bool:
    """True if the response is a bot-mitigation challenge page."""
    value = response.header(MITIGATION_HEADER)
    return value is not None and value.strip().lower() == MITIGATION_CHALLENGE


class TraversalEngine:
    """Recursive crawl scheduler for a single run.

    Each ``crawl(url, depth)`` call is one traversal branch. A branch holds a
    concurrency permit only while it talks to the network and processes the
    payload; it then fans out one task per outbound link and waits for all of
    them. Failures stay inside the branch that raised them.
    """

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: Fetcher,
        registry: VisitedRegistry,
        store: ContentStore,
        robots: RobotsPolicyCache,
        link_extractor: LinkExtractor = extract_links,
        robots_matcher: RobotsMatcher | None = None,
        mime_sniffer: MimeSniffer = sniff_mime,
        resolver: UrlResolver = resolve,
        on_stored: Callable[[str, int], None] | None = None,
    ):
        self.config = config
        self.fetcher = fetcher
        self.registry = registry
        self.store = store
        self.robots = robots
        self.link_extractor = link_extractor
        self.robots_matcher = robots_matcher
        self.mime_sniffer = mime_sniffer
        self.resolver = resolver
        self.on_stored = on_stored
        self.semaphore = asyncio.Semaphore(config.max_concurrent_requests)

    async def crawl(self, url: str, depth: int):
        """Crawl ``url`` at ``depth`` and everything reachable from it."""
        if not await self.registry.try_claim(url, depth):
            logger.debug(
                "Skipping %s {depth: %d, visited: %d}", url, depth, len(self.registry)
            )
            return

        try:
            text = await self._process(url)
            if text is None:
                return
            await self._fan_out(url, text, depth)
        except CrawlError as e:
            logger.warning("Failed to crawl %s: %s", url, e)
            await self.registry.release(url)
            return
        except Exception:
            logger.exception("Unexpected error while crawling %s", url)
            await self.registry.release(url)
            return

        logger.debug("Finished crawling %s", url)

    async def _process(self, url: str) -> str | None:
        """Fetch and store one URL under a permit.

        Returns the page text when the branch should recurse, else None.
        """
        async with self.semaphore:
            # Other branches may have filled the budget while we waited
            if self.registry.is_full():
                await self.registry.release(url)
                return None

            if self.config.respect_robots:
                policy = await self.robots.get_policy(url)
                logger.debug("Sleeping %ss for %s (robots policy)", policy.crawl_delay, url)
                await _polite_wait(policy.crawl_delay)
                if not self._allowed(policy, url):
                    logger.debug("Disallowed by robots.txt: %s", url)
                    await self.registry.release(url)
                    return None
            else:
                await _polite_wait(self.config.rate_limit_wait_seconds)

            response = await self.fetcher.fetch(url)

            if is_challenged(response):
                logger.debug("Bot mitigation challenge, skipping %s", url)
                await self.registry.release(url)
                return None

            payload = response.content
            if self.config.filters_mimes:
                mime = self.mime_sniffer(payload)
                if not is_accepted(mime, self.config.allowed_mimes):
                    logger.debug("Rejected %s with media type %s", url, mime)
                    await self.registry.mark_visited(url)
                    return None

            try:
                text = payload.decode("utf-8")
            except UnicodeDecodeError:
                raise DecodeFailure(url) from None

            await self.store.add(url, text)
            full = await self.registry.mark_visited(url)
            if self.on_stored is not None:
                self.on_stored(url, len(self.store))

        if full:
            logger.debug("Reached page limit {max_pages: %d}", self.config.max_pages)
            return None
        return text

    def _allowed(self, policy: RobotsEntry, url: str) -> bool:
        if not policy.known:
            return True
        if self.robots_matcher is None:
            return policy.allows(self.config.user_agent, url)
        return self.robots_matcher(policy.robots_text, self.config.user_agent, url)

    async def _fan_out(self, url: str, text: str, depth: int):
        children = []
        for href in self.link_extractor(text):
            try:
                link = self.resolver(url, href)
            except InvalidUrl:
                continue
            children.append(self.crawl(link, depth + 1))

        if children:
            logger.debug("Found %d links on %s", len(children), url)
            await asyncio.gather(*children)


class Crawler:
    """Polite, bounded-concurrency crawler.

    One instance can run several crawls; each ``start`` call gets fresh
    visited, content and robots state.
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        fetcher: Fetcher | None = None,
        link_extractor: LinkExtractor = extract_links,
        robots_matcher: RobotsMatcher | None = None,
        mime_sniffer: MimeSniffer = sniff_mime,
        resolver: UrlResolver = resolve,
        on_stored: Callable[[str, int], None] | None = None,
    ):
        self.config = config or CrawlConfig()
        self._owns_fetcher = fetcher is None
        if fetcher is None:
            try:
                fetcher = HttpFetcher(
                    timeout=self.config.timeout,
                    user_agent=self.config.user_agent,
                    max_connections=self.config.max_concurrent_requests,
                )
            except (TypeError, ValueError) as e:
                raise CrawlerSetupError(f"cannot build HTTP client: {e}") from e
        self.fetcher = fetcher
        self.link_extractor = link_extractor
        self.robots_matcher = robots_matcher
        self.mime_sniffer = mime_sniffer
        self.resolver = resolver
        self.on_stored = on_stored

    async def __aenter__(self) -> "Crawler":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the HTTP client if this crawler created it."""
        if self._owns_fetcher:
            await self.fetcher.close()

    async def start(self, seed_url: str) -> dict[str, str]:
        """Crawl from ``seed_url`` and return fetched URL -> content.

        Raises InvalidSeedUrl if the seed is not an absolute http(s) URL.
        Per-page failures are logged and leave gaps in the result.
        """
        root = parse_seed(seed_url)
        config = self.config

        registry = VisitedRegistry(max_pages=config.max_pages, max_depth=config.max_depth)
        store = ContentStore()
        robots = RobotsPolicyCache(self.fetcher, default_delay=config.rate_limit_wait_seconds)
        engine = TraversalEngine(
            config,
            self.fetcher,
            registry,
            store,
            robots,
            link_extractor=self.link_extractor,
            robots_matcher=self.robots_matcher,
            mime_sniffer=self.mime_sniffer,
            resolver=self.resolver,
            on_stored=self.on_stored,
        )

        logger.info(
            "Starting crawl from %s {max_depth: %d, max_pages: %d, concurrency: %d}",
            root, config.max_depth, config.max_pages, config.max_concurrent_requests,
        )
        await engine.crawl(root, 0)
        logger.info(
            "Crawl complete: %d stored, %d visited, %d robots domains",
            len(store), len(registry), len(robots),
        )
        return store.snapshot()


async def run_crawl(
    start_url: str,
    config: CrawlConfig,
    output_path: str | Path | None = None,
    include_content: bool = True,
) -> dict[str, str]:
    """Run a crawl, echo progress and optionally save results as JSONL."""
    typer.echo(f"Starting crawl from {start_url}")
    typer.echo(
        f"Max pages: {config.max_pages}, Max depth: {config.max_depth}, "
        f"Concurrency: {config.max_concurrent_requests}"
    )

    def progress(url: str, count: int):
        typer.echo(f"[{count}/{config.max_pages}] {url}")

    start_time = time.time()
    async with Crawler(config, on_stored=progress) as crawler:
        results = await crawler.start(start_url)
    elapsed = time.time() - start_time

    typer.echo(f"\nCrawl complete: {len(results)} pages in {elapsed:.1f}s")

    if output_path:
        with StreamingOutputWriter(output_path, include_content=include_content) as writer:
            writer.write_all(results)
        typer.echo(f"Results saved to {output_path}")

    return results
