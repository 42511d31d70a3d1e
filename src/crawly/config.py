"""Configuration using pydantic-settings."""

from dataclasses import dataclass, field, replace
from typing import Iterable

from pydantic_settings import BaseSettings

from .errors import ConfigError

DEFAULT_USER_AGENT = "Crawly/0.1 (+https://github.com/crawly)"
DEFAULT_MAX_DEPTH = 5
DEFAULT_MAX_PAGES = 15
DEFAULT_MAX_CONCURRENT_REQUESTS = 1000
DEFAULT_RATE_LIMIT_WAIT_SECONDS = 1.0
DEFAULT_TIMEOUT = 10.0


class CrawlerSettings(BaseSettings):
    """Crawler defaults, overridable through ``CRAWLER_*`` environment variables."""

    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages: int = DEFAULT_MAX_PAGES
    max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS
    rate_limit_wait_seconds: float = DEFAULT_RATE_LIMIT_WAIT_SECONDS
    respect_robots: bool = True
    allowed_mimes: list[str] = []

    model_config = {"env_prefix": "CRAWLER_"}


settings = CrawlerSettings()


@dataclass(frozen=True)
class CrawlConfig:
    """Immutable settings for one crawl run."""

    user_agent: str = DEFAULT_USER_AGENT
    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages: int = DEFAULT_MAX_PAGES
    max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS
    rate_limit_wait_seconds: float = DEFAULT_RATE_LIMIT_WAIT_SECONDS
    respect_robots: bool = True
    allowed_mimes: frozenset[str] = field(default_factory=frozenset)
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        if self.max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_pages < 0:
            raise ConfigError(f"max_pages must be >= 0, got {self.max_pages}")
        if self.max_concurrent_requests < 1:
            raise ConfigError(
                f"max_concurrent_requests must be >= 1, got {self.max_concurrent_requests}"
            )
        if self.rate_limit_wait_seconds < 0:
            raise ConfigError(
                f"rate_limit_wait_seconds must be >= 0, got {self.rate_limit_wait_seconds}"
            )
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
        if not self.user_agent:
            raise ConfigError("user_agent must not be empty")
        # Accept any iterable of MIME strings but always store a frozenset
        object.__setattr__(
            self, "allowed_mimes", frozenset(m.strip().lower() for m in self.allowed_mimes)
        )

    @classmethod
    def from_settings(cls, source: CrawlerSettings | None = None) -> "CrawlConfig":
        """Build a config from environment-backed settings."""
        source = source or settings
        return cls(
            user_agent=source.user_agent,
            max_depth=source.max_depth,
            max_pages=source.max_pages,
            max_concurrent_requests=source.max_concurrent_requests,
            rate_limit_wait_seconds=source.rate_limit_wait_seconds,
            respect_robots=source.respect_robots,
            allowed_mimes=frozenset(source.allowed_mimes),
            timeout=source.timeout,
        )

    @property
    def filters_mimes(self) -> bool:
        return bool(self.allowed_mimes)


def with_max_depth(config: CrawlConfig, depth: int) -> CrawlConfig:
    return replace(config, max_depth=depth)


def with_max_pages(config: CrawlConfig, pages: int) -> CrawlConfig:
    return replace(config, max_pages=pages)


def with_max_concurrent_requests(config: CrawlConfig, requests: int) -> CrawlConfig:
    return replace(config, max_concurrent_requests=requests)


def with_rate_limit_wait_seconds(config: CrawlConfig, seconds: float) -> CrawlConfig:
    return replace(config, rate_limit_wait_seconds=seconds)


def with_user_agent(config: CrawlConfig, user_agent: str) -> CrawlConfig:
    return replace(config, user_agent=user_agent)


def with_robots(config: CrawlConfig, respect_robots: bool) -> CrawlConfig:
    return replace(config, respect_robots=respect_robots)


def with_allowed_mimes(config: CrawlConfig, mimes: Iterable[str]) -> CrawlConfig:
    return replace(config, allowed_mimes=frozenset(mimes))
