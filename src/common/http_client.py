"""
Shared HTTP Client Configuration.

Provides standardized HTTP client creation and the article fetch used by the
pipeline. Article pages are fetched with browser-like headers; the final URL
after redirects is returned with the body because the extractor derives the
article's domain from it.

Usage:
    from src.common.http_client import create_article_client, fetch_html

    async with create_article_client() as client:
        page = await fetch_html(client, url)
        print(page.final_url, len(page.html))
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from ..config.settings import settings
from .errors import FetchError


# =============================================================================
# User-Agent Constants
# =============================================================================

# Browser-like User-Agent - Used for article pages and the headless browser
USER_AGENT_BROWSER = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

BROWSER_HEADERS = {
    "User-Agent": USER_AGENT_BROWSER,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,bn;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


@dataclass(frozen=True)
class FetchedPage:
    """Body of a fetched page plus where the redirects ended."""
    html: str
    final_url: str
    status_code: int


# =============================================================================
# HTTP Client Factory
# =============================================================================

def create_scraper_client(
    timeout: Optional[float] = None,
    max_connections: int = 20,
    max_keepalive: int = 10,
    max_redirects: Optional[int] = None,
    extra_headers: Optional[dict] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create a standardized async HTTP client for scraping.

    Args:
        timeout: Request timeout in seconds (default: settings.article_fetch_timeout)
        max_connections: Maximum concurrent connections
        max_keepalive: Maximum keepalive connections
        max_redirects: Redirect hop limit (default: settings.max_redirects)
        extra_headers: Additional headers to include
        transport: Optional transport override (tests use httpx.MockTransport)

    Returns:
        Configured httpx.AsyncClient
    """
    headers = dict(BROWSER_HEADERS)
    if extra_headers:
        headers.update(extra_headers)

    kwargs = {}
    if transport is not None:
        kwargs["transport"] = transport

    return httpx.AsyncClient(
        timeout=timeout or settings.article_fetch_timeout,
        headers=headers,
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive,
        ),
        follow_redirects=True,
        max_redirects=max_redirects if max_redirects is not None else settings.max_redirects,
        **kwargs,
    )


def create_article_client(
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create a client for fetching individual articles."""
    return create_scraper_client(
        timeout=timeout or settings.article_fetch_timeout,
        transport=transport,
    )


def create_feed_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Create a client for RSS feed requests (shorter timeout)."""
    return create_scraper_client(timeout=settings.feed_timeout, transport=transport)


async def fetch_html(client: httpx.AsyncClient, url: str) -> FetchedPage:
    """
    GET an article page.

    2xx and 3xx responses are accepted (a 3xx can only remain when the server
    sent no usable Location). Everything else raises FetchError.

    Raises:
        FetchError: On timeout, transport error, too many redirects, or bad status
    """
    try:
        response = await client.get(url)
    except httpx.TimeoutException as e:
        raise FetchError(f"Timeout fetching {url}: {e}", url=url) from e
    except httpx.TooManyRedirects as e:
        raise FetchError(f"Too many redirects fetching {url}", url=url) from e
    except httpx.HTTPError as e:
        raise FetchError(f"Network error fetching {url}: {e}", url=url) from e

    if not 200 <= response.status_code < 400:
        raise FetchError(
            f"HTTP {response.status_code} fetching {url}",
            url=url,
            status_code=response.status_code,
        )

    return FetchedPage(
        html=response.text,
        final_url=str(response.url),
        status_code=response.status_code,
    )
