"""URL normalization, resolution and hyperlink extraction."""

from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

import tldextract
from selectolax.parser import HTMLParser

from .errors import HostResolutionFailure, InvalidSeedUrl, InvalidUrl

SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:", "data:")

# Bundled public suffix snapshot only; never fetch the list over the network
_extract_domain = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())


def normalize_url(url: str) -> str:
    """Normalize URL for deduplication (remove fragment, sort query params)."""
    parsed = urlparse(url)

    # Sort query parameters
    query_params = parse_qsl(parsed.query, keep_blank_values=True)
    sorted_query = urlencode(sorted(query_params))

    # Normalize path (remove trailing slash except for root)
    path = parsed.path.rstrip('/') or '/'

    normalized = urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        path,
        parsed.params,
        sorted_query,
        ''  # Remove fragment
    ))
    return normalized


def _check_absolute(url: str) -> None:
    try:
        parsed = urlparse(url)
        # Accessing .port validates the netloc
        parsed.port
    except ValueError as e:
        raise InvalidUrl(f"{url!r}: {e}") from e

    if parsed.scheme.lower() not in ("http", "https"):
        raise InvalidUrl(f"{url!r}: unsupported scheme {parsed.scheme!r}")
    if not parsed.hostname:
        raise InvalidUrl(f"{url!r}: missing host")


def parse_seed(url: str) -> str:
    """Validate and normalize the seed URL of a crawl."""
    url = url.strip()
    try:
        _check_absolute(url)
    except InvalidUrl as e:
        raise InvalidSeedUrl(str(e)) from e
    return normalize_url(url)


def resolve(base: str, relative: str) -> str:
    """Resolve an href against the page it was found on.

    Raises InvalidUrl for hrefs that do not lead to an http(s) URL.
    """
    href = relative.strip()
    if not href or href.lower().startswith(SKIPPED_SCHEMES):
        raise InvalidUrl(f"{relative!r}: not a crawlable link")

    try:
        absolute_url = urljoin(base, href)
    except ValueError as e:
        raise InvalidUrl(f"{relative!r}: {e}") from e

    _check_absolute(absolute_url)
    return normalize_url(absolute_url)


def host_of(url: str) -> str:
    """Return the lowercased host of a URL."""
    host = urlparse(url).hostname
    if not host:
        raise HostResolutionFailure(f"no host in {url!r}")
    return host


def registrable_domain(url: str) -> str:
    """Return the registrable domain of a URL's host.

    ``docs.example.co.uk`` -> ``example.co.uk``. Hosts without a known public
    suffix (``localhost``, ``a.test``, IP literals) are returned unchanged.
    """
    host = host_of(url)
    ext = _extract_domain(host)
    if not ext.suffix or not ext.domain:
        return host
    return f"{ext.domain}.{ext.suffix}"


def robots_url(url: str) -> str:
    """Return the robots.txt URL for the host serving ``url``."""
    parsed = urlparse(url)
    if not parsed.hostname:
        raise HostResolutionFailure(f"no host in {url!r}")
    return f"{parsed.scheme}://{parsed.netloc}/robots.txt"


def extract_links(html: str) -> list[str]:
    """Return the href of every anchor in document order (duplicates kept)."""
    if not html:
        return []
    tree = HTMLParser(html)
    links = []
    for node in tree.css("a"):
        href = node.attributes.get("href")
        if href:
            links.append(href)
    return links
