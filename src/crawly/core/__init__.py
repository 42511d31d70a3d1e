"""Core crawler components."""

from .fetcher import HttpFetcher
from .protocols import (
    Fetcher,
    LinkExtractor,
    MimeSniffer,
    Response,
    RobotsMatcher,
    UrlResolver,
)

__all__ = [
    "Fetcher",
    "HttpFetcher",
    "LinkExtractor",
    "MimeSniffer",
    "Response",
    "RobotsMatcher",
    "UrlResolver",
]
