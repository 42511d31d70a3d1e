"""Exception hierarchy for crawl runs.

Only ``InvalidSeedUrl``, ``ConfigError`` and ``CrawlerSetupError`` ever reach the
caller of :meth:`crawly.crawl.Crawler.start`. Everything else is raised inside a
single traversal branch and absorbed there.
"""


class CrawlError(Exception):
    """Base class for all crawler errors."""


class ConfigError(CrawlError, ValueError):
    """A crawl configuration value is out of range."""


class CrawlerSetupError(CrawlError):
    """The crawler could not build its collaborators (e.g. the HTTP client)."""


class InvalidUrl(CrawlError, ValueError):
    """A URL could not be parsed or resolved to an absolute http(s) URL."""


class InvalidSeedUrl(InvalidUrl):
    """The seed URL handed to ``start`` is malformed."""


class HostResolutionFailure(CrawlError):
    """No host could be derived from a URL."""


class FetchError(CrawlError):
    """Network-level failure while fetching a URL."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}" if reason else url)


TransportFailure = FetchError


class RobotsFetchFailure(FetchError):
    """robots.txt could not be retrieved; the domain is crawled fail-open."""


class DecodeFailure(CrawlError):
    """A fetched payload is not valid UTF-8 text."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"{url}: payload is not valid UTF-8")
