"""
Link Resolver - turns an aggregator link into the publisher's URL.

Google News links land on news.google.com and forward to the article with a
JavaScript redirect (sometimes via a consent or challenge interstitial). We
load the link in a real browser page, give the redirect a moment to fire,
then look at where we ended up.

If the page is still on a blocked host we scan its DOM for outbound links
(canonical, og:url, iframes, absolute anchors) and take the first one that
isn't blocked. If nothing qualifies the input link comes back unchanged.

USAGE:
    async with slot.page() as page:
        real_url = await resolve_link(page, google_news_url)
"""

import asyncio
import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeoutError

from ..common.errors import NavigationError
from ..common.url_utils import is_blocked_url
from ..config.settings import settings

logger = logging.getLogger(__name__)


def collect_candidate_urls(html: Optional[str], base_url: str) -> List[str]:
    """
    Outbound URL candidates from a rendered page, in priority order.

    canonical link, og:url, iframe sources, then every absolute anchor.
    Relative values are resolved against base_url. Duplicates are dropped,
    first occurrence wins.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "lxml")
    raw: List[str] = []

    canonical = soup.select_one("link[rel='canonical']")
    if canonical is not None:
        raw.append(canonical.get("href") or "")

    for selector in ("meta[property='og:url']", "meta[name='og:url']"):
        el = soup.select_one(selector)
        if el is not None:
            raw.append(el.get("content") or "")

    raw.extend(el.get("src") or "" for el in soup.select("iframe[src]"))
    raw.extend(el.get("href") or "" for el in soup.select("a[href^='http']"))

    seen = set()
    urls = []
    for value in raw:
        value = value.strip()
        if not value:
            continue
        absolute = urljoin(base_url, value)
        if absolute in seen:
            continue
        seen.add(absolute)
        urls.append(absolute)
    return urls


def pick_unblocked(urls: List[str]) -> Optional[str]:
    for url in urls:
        if not is_blocked_url(url):
            return url
    return None


async def resolve_link(
    page: Page,
    link: str,
    timeout: Optional[float] = None,
    settle_delay: Optional[float] = None,
) -> str:
    """
    Resolve one candidate link to the publisher URL.

    Args:
        page: A fresh page borrowed from the renderer
        link: The aggregator link
        timeout: Navigation timeout in seconds
        settle_delay: Seconds to wait for client-side redirects to fire

    Returns:
        The resolved URL, or `link` itself when nothing better was found

    Raises:
        NavigationError: Navigation timed out or the browser failed
    """
    timeout = settings.navigation_timeout if timeout is None else timeout
    settle_delay = settings.resolve_settle_delay if settle_delay is None else settle_delay

    try:
        await page.goto(link, wait_until="domcontentloaded", timeout=timeout * 1000)
        await asyncio.sleep(settle_delay)

        current = page.url
        if current and not is_blocked_url(current):
            return current

        html = await page.content()
    except PlaywrightTimeoutError as e:
        raise NavigationError(f"Navigation timed out after {timeout:.0f}s", url=link) from e
    except PlaywrightError as e:
        raise NavigationError(f"Navigation failed: {e}", url=link) from e

    resolved = pick_unblocked(collect_candidate_urls(html, current or link))
    if resolved:
        logger.debug(f"Resolved {link} via DOM scan -> {resolved}")
        return resolved

    logger.debug(f"Could not resolve {link}, keeping original link")
    return link
