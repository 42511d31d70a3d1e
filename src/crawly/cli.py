"""CLI interface using typer."""

import asyncio
import logging

import typer

from .config import (
    CrawlConfig,
    settings,
    with_allowed_mimes,
    with_max_concurrent_requests,
    with_max_depth,
    with_max_pages,
    with_rate_limit_wait_seconds,
    with_robots,
    with_user_agent,
)
from .core import HttpFetcher
from .errors import CrawlError
from .links import parse_seed
from .robots import RobotsPolicyCache

app = typer.Typer(
    name="crawly",
    help="Polite async web crawler that respects robots.txt",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


@app.command()
def crawl(
    start_url: str = typer.Argument(..., help="Starting URL for crawl"),
    max_pages: int = typer.Option(settings.max_pages, "--max-pages", "-n", help="Maximum pages to crawl"),
    max_depth: int = typer.Option(settings.max_depth, "--max-depth", "-d", help="Maximum link depth"),
    concurrency: int = typer.Option(
        settings.max_concurrent_requests, "--concurrency", "-c", help="Concurrent requests"
    ),
    delay: float = typer.Option(
        settings.rate_limit_wait_seconds, "--delay", help="Delay before each request (seconds)"
    ),
    user_agent: str = typer.Option(settings.user_agent, "--user-agent", "-u", help="User-Agent header"),
    robots: bool = typer.Option(settings.respect_robots, "--robots/--no-robots", help="Respect robots.txt"),
    mime: list[str] = typer.Option([], "--mime", "-m", help="Allowed media type (repeatable)"),
    output: str = typer.Option(None, "-o", "--output", help="Output file (JSONL)"),
    no_content: bool = typer.Option(False, "--no-content", help="Omit page content from output"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show debug logging"),
):
    """Crawl a website starting from a URL."""
    from .crawl import run_crawl

    _configure_logging(verbose)

    try:
        config = CrawlConfig.from_settings(settings)
        config = with_max_pages(config, max_pages)
        config = with_max_depth(config, max_depth)
        config = with_max_concurrent_requests(config, concurrency)
        config = with_rate_limit_wait_seconds(config, delay)
        config = with_user_agent(config, user_agent)
        config = with_robots(config, robots)
        if mime:
            config = with_allowed_mimes(config, mime)

        asyncio.run(run_crawl(
            start_url=start_url,
            config=config,
            output_path=output,
            include_content=not no_content,
        ))
    except CrawlError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


async def _inspect_robots(url: str, config: CrawlConfig) -> dict:
    """Fetch the robots policy covering ``url`` and evaluate it."""
    fetcher = HttpFetcher(timeout=config.timeout, user_agent=config.user_agent)
    cache = RobotsPolicyCache(fetcher, default_delay=config.rate_limit_wait_seconds)
    try:
        entry = await cache.get_policy(url)
    finally:
        await fetcher.close()
    return {
        "domain": entry.domain,
        "found": entry.known,
        "crawl_delay": entry.crawl_delay,
        "allowed": entry.allows(config.user_agent, url),
    }


@app.command()
def robots(
    url: str = typer.Argument(..., help="URL to check against its robots.txt"),
    user_agent: str = typer.Option(settings.user_agent, "--user-agent", "-u", help="User-Agent to check"),
):
    """Show the robots.txt policy that applies to a URL."""
    try:
        config = with_user_agent(CrawlConfig.from_settings(settings), user_agent)
        result = asyncio.run(_inspect_robots(parse_seed(url), config))
    except CrawlError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Domain: {result['domain']}")
    typer.echo(f"robots.txt: {'found' if result['found'] else 'unavailable'}")
    typer.echo(f"Crawl delay: {result['crawl_delay']}s")
    typer.echo(f"Allowed: {'yes' if result['allowed'] else 'no'}")


@app.command()
def version():
    """Show version."""
    from . import __version__

    typer.echo(f"crawly {__version__}")


if __name__ == "__main__":
    app()
