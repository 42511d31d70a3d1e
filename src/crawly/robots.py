"""Per-domain robots.txt cache and crawl-delay handling."""

import asyncio
import logging
import re
from dataclasses import dataclass

from robotexclusionrulesparser import RobotExclusionRulesParser

from .core import Fetcher
from .errors import FetchError, RobotsFetchFailure
from .links import registrable_domain, robots_url

logger = logging.getLogger(__name__)

CRAWL_DELAY_TOKEN = "Crawl-delay"
_UINT = re.compile(r"\d+")


def parse_crawl_delay(robots_text: str, default: float) -> float:
    """Return the crawl delay declared in a robots.txt body.

    Lines mentioning ``Crawl-delay`` are tried in order and the first whose
    value after the last ``:`` is an unsigned integer wins. Lines that do not
    parse are skipped; with no usable line the result is ``default``.
    """
    for line in robots_text.splitlines():
        if CRAWL_DELAY_TOKEN in line:
            value = line.split(":")[-1].strip()
            if _UINT.fullmatch(value):
                return int(value)
    return default


def parse_rules(robots_text: str) -> RobotExclusionRulesParser:
    parser = RobotExclusionRulesParser()
    parser.parse(robots_text)
    return parser


def is_allowed(robots_text: str, user_agent: str, url: str) -> bool:
    """Check if ``user_agent`` may fetch ``url`` under ``robots_text``."""
    return parse_rules(robots_text).is_allowed(user_agent, url)


@dataclass
class RobotsEntry:
    """robots.txt state for one domain."""
    domain: str
    robots_text: str | None
    crawl_delay: float
    rules: RobotExclusionRulesParser | None = None

    @property
    def known(self) -> bool:
        """False when robots.txt could not be fetched (no restriction known)."""
        return self.robots_text is not None

    def allows(self, user_agent: str, url: str) -> bool:
        if self.rules is None:
            return True
        return self.rules.is_allowed(user_agent, url)


class RobotsPolicyCache:
    """Caches robots.txt per registrable domain for one crawl run.

    Concurrent first lookups for the same domain may both fetch robots.txt;
    the last write wins. The lock only guards the dict itself.
    """

    def __init__(self, fetcher: Fetcher, default_delay: float = 1.0):
        self.fetcher = fetcher
        self.default_delay = default_delay
        self._entries: dict[str, RobotsEntry] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, domain: str) -> bool:
        return domain in self._entries

    def get(self, domain: str) -> RobotsEntry | None:
        return self._entries.get(domain)

    async def get_policy(self, url: str) -> RobotsEntry:
        """Return the cached entry for the URL's domain, fetching on miss."""
        domain = registrable_domain(url)

        async with self._lock:
            entry = self._entries.get(domain)
        if entry is not None:
            logger.debug("robots.txt cache hit for %s", domain)
            return entry

        entry = await self._fetch_entry(domain, url)

        async with self._lock:
            self._entries[domain] = entry
        return entry

    async def _fetch_entry(self, domain: str, url: str) -> RobotsEntry:
        target = robots_url(url)
        try:
            response = await self.fetcher.fetch(target)
            if not response.ok:
                raise RobotsFetchFailure(target, f"HTTP {response.status}")
        except FetchError as e:
            # Fail-open: no restriction known, default delay still applies
            logger.info("robots.txt unavailable for %s (%s), crawling unrestricted", domain, e)
            return RobotsEntry(domain=domain, robots_text=None, crawl_delay=self.default_delay)

        robots_text = response.text
        delay = parse_crawl_delay(robots_text, self.default_delay)
        logger.debug("Fetched robots.txt for %s (crawl delay %ss)", domain, delay)
        return RobotsEntry(
            domain=domain,
            robots_text=robots_text,
            crawl_delay=delay,
            rules=parse_rules(robots_text),
        )
