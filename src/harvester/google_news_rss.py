"""
Google News RSS Search - Candidate discovery.

Builds a Google News RSS search URL for a query, parses the feed with
feedparser and turns each entry into a CandidateItem. The links point at
news.google.com and still need resolving.

When a year range is given the search runs once per year, newest year first,
with "<query> <year>" as the search string. Google caps each feed at roughly
100 entries, so splitting by year is the only way to reach older coverage.

RSS Format:
https://news.google.com/rss/search?q=<query>&hl=bn&gl=BD&ceid=BD:bn
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import urlencode

import feedparser
import httpx

from ..analyst.schemas import CandidateItem
from ..common.http_client import create_feed_client, fetch_html
from ..config.settings import settings

logger = logging.getLogger(__name__)

GOOGLE_NEWS_RSS_URL = "https://news.google.com/rss/search"
DEFAULT_SOURCE = "Google News"

SubQuery = Union[str, Sequence[str], None]


@dataclass
class SearchResult:
    """Unique candidates for one search, newest first."""
    query: str
    base_query: str
    sub_query: Any = None
    from_year: Optional[int] = None
    to_year: Optional[int] = None
    items: List[CandidateItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.items)

    def to_dict(self, limit: Optional[int] = None) -> Dict[str, Any]:
        shown = self.items if limit is None else self.items[:limit]
        return {
            "query": self.query,
            "subQuery": self.sub_query or None,
            "baseQuery": self.base_query,
            "fromYear": self.from_year,
            "toYear": self.to_year,
            "total": self.total,
            "count": len(shown),
            "items": [item.to_dict() for item in shown],
        }


def build_feed_url(query: str) -> str:
    """Google News RSS search URL for the configured edition."""
    params = {
        "q": query,
        "hl": settings.feed_language,
        "gl": settings.feed_country,
        "ceid": settings.feed_ceid,
    }
    return f"{GOOGLE_NEWS_RSS_URL}?{urlencode(params)}"


def split_sub_query(sub_query: SubQuery) -> List[str]:
    """Extra terms from a comma-separated string or a list."""
    if not sub_query:
        return []
    if isinstance(sub_query, str):
        parts = sub_query.split(",")
    else:
        parts = [str(s) for s in sub_query]
    return [p.strip() for p in parts if p and p.strip()]


def build_base_query(query: str, sub_query: SubQuery = None) -> str:
    return " ".join([query] + split_sub_query(sub_query))


def parse_year(value: Any) -> Optional[int]:
    """Lenient year parsing: "2024", 2024 and 2024.0 work, anything else is None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        year = int(str(value).strip().split(".")[0])
    except ValueError:
        return None
    return year or None


def parse_feed(xml: str) -> List[CandidateItem]:
    """
    Turn RSS XML into candidates.

    Entries without a link are dropped. The source name comes from the
    entry's <source> element, else the channel title, else "Google News".
    """
    feed = feedparser.parse(xml)

    if feed.bozo and not feed.entries:
        logger.warning(f"Malformed Google News feed: {feed.bozo_exception}")
        return []

    channel_title = feed.feed.get("title") or DEFAULT_SOURCE

    items = []
    for entry in feed.entries:
        link = (entry.get("link") or "").strip()
        if not link:
            continue

        source_entry = entry.get("source") or {}
        items.append(CandidateItem.from_feed(
            link=link,
            title=entry.get("title", ""),
            source=source_entry.get("title") or channel_title,
            source_url=source_entry.get("href") or None,
            published=entry.get("published"),
        ))

    return items


async def fetch_feed(client: httpx.AsyncClient, query: str) -> List[CandidateItem]:
    """
    Fetch and parse one RSS search.

    Raises:
        FetchError: On timeout, transport error or non-2xx/3xx status
    """
    feed_url = build_feed_url(query)
    page = await fetch_html(client, feed_url)
    items = parse_feed(page.html)
    logger.info(f"Google News: {len(items)} entries for '{query}'")
    return items


def dedupe_and_sort(items: List[CandidateItem]) -> List[CandidateItem]:
    """Unique by link (first wins), newest first, undated last."""
    seen = set()
    unique = []
    for item in items:
        if item.link in seen:
            continue
        seen.add(item.link)
        unique.append(item)

    # ISO strings share one format, so they sort chronologically as text
    return sorted(unique, key=lambda i: i.published_at or "", reverse=True)


async def search_news(
    query: str,
    sub_query: SubQuery = None,
    from_year: Any = None,
    to_year: Any = None,
    client: Optional[httpx.AsyncClient] = None,
) -> SearchResult:
    """
    Search Google News for a topic.

    Args:
        query: Main search term
        sub_query: Extra terms, comma-separated string or list
        from_year, to_year: When both are set, search year by year (newest first)
        client: Optional shared client (one is created otherwise)

    Raises:
        FetchError: If any feed request fails
    """
    base_query = build_base_query(query, sub_query)
    start_year = parse_year(from_year)
    end_year = parse_year(to_year)

    if start_year and end_year:
        low, high = min(start_year, end_year), max(start_year, end_year)
        queries = [f"{base_query} {year}" for year in range(high, low - 1, -1)]
    else:
        queries = [base_query]

    async def collect(http: httpx.AsyncClient) -> List[CandidateItem]:
        collected: List[CandidateItem] = []
        for q in queries:
            collected.extend(await fetch_feed(http, q))
            if len(queries) > 1 and settings.feed_year_delay > 0:
                await asyncio.sleep(settings.feed_year_delay)
        return collected

    if client is not None:
        raw = await collect(client)
    else:
        async with create_feed_client() as http:
            raw = await collect(http)

    items = dedupe_and_sort(raw)
    logger.info(f"Search '{base_query}': {len(raw)} entries, {len(items)} unique")

    return SearchResult(
        query=query,
        base_query=base_query,
        sub_query=sub_query,
        from_year=start_year,
        to_year=end_year,
        items=items,
    )
