"""Polite, bounded-concurrency async web crawler."""

from .config import CrawlConfig, CrawlerSettings
from .crawl import Crawler, TraversalEngine
from .errors import (
    ConfigError,
    CrawlError,
    CrawlerSetupError,
    DecodeFailure,
    FetchError,
    HostResolutionFailure,
    InvalidSeedUrl,
    InvalidUrl,
    RobotsFetchFailure,
    TransportFailure,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "CrawlConfig",
    "CrawlError",
    "Crawler",
    "CrawlerSettings",
    "CrawlerSetupError",
    "DecodeFailure",
    "FetchError",
    "HostResolutionFailure",
    "InvalidSeedUrl",
    "InvalidUrl",
    "RobotsFetchFailure",
    "TraversalEngine",
    "TransportFailure",
]
