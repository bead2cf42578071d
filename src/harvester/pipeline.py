"""
Harvest pipelines.

run_all_scrape:  search -> limit -> resolve + scrape (browser) -> save one JSON.
resolved_search: search -> limit -> resolve links (browser), nothing saved.
scrape_urls:     fetch + extract a known list of publisher URLs (no browser) -> save.

Each returns the response payload the HTTP layer sends back.

CLI:
    python -m src.harvester.pipeline "শেখ হাসিনা" --from-year 2020 --to-year 2024 --limit 300
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from ..analyst.extractor import extract_article
from ..analyst.schemas import BatchDocument
from ..archivist.storage import DEFAULT_DOCUMENT_NAME, resolve_out_dir, save_document
from ..common.dates import utc_now_iso
from ..common.errors import NavigationError
from ..common.http_client import create_article_client, fetch_html
from ..config.settings import Settings, settings
from .google_news_rss import SearchResult, SubQuery, search_news
from .orchestrator import BatchOrchestrator
from .renderer import LeaseFactory, RendererSlot, launch_renderer
from .resolver import resolve_link

logger = logging.getLogger(__name__)

SearchFunc = Callable[..., Awaitable[SearchResult]]


async def run_all_scrape(
    query: str,
    sub_query: SubQuery = None,
    limit: Any = None,
    from_year: Any = None,
    to_year: Any = None,
    name: Optional[str] = None,
    out_dir: Optional[str] = None,
    orchestrator: Optional[BatchOrchestrator] = None,
    search: SearchFunc = search_news,
) -> Dict[str, Any]:
    """
    Search, resolve, scrape and persist in one go.

    When the search finds nothing, no browser is launched and no file is
    written; outPath is None.

    Raises:
        FetchError: If the feed search fails
        LaunchFailure: If the browser can't be launched
    """
    found = await search(query, sub_query=sub_query, from_year=from_year, to_year=to_year)

    if not found.items:
        logger.info(f"No search results for '{found.base_query}'")
        doc = BatchDocument(
            query=query,
            sub_query=sub_query,
            base_query=found.base_query,
            from_year=found.from_year,
            to_year=found.to_year,
            total_found=0,
            generated_at=utc_now_iso(),
        )
        return {"outPath": None, **doc.to_dict()}

    orchestrator = orchestrator or BatchOrchestrator()
    result = await orchestrator.run(found.items, limit=limit)

    doc = BatchDocument(
        query=query,
        sub_query=sub_query,
        base_query=found.base_query,
        from_year=found.from_year,
        to_year=found.to_year,
        total_found=found.total,
        generated_at=utc_now_iso(),
        items=result.items,
        errors=result.errors,
    )

    payload = doc.to_dict()
    out_path = save_document(payload, out_dir, name or DEFAULT_DOCUMENT_NAME)
    return {"outPath": str(out_path), **payload}


def search_limit(limit: Any, config: Optional[Settings] = None) -> int:
    """Display limit for search results; unusable values fall back to the default."""
    config = config or settings
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return config.default_search_limit
    return value if value > 0 else config.default_search_limit


async def resolved_search(
    query: str,
    sub_query: SubQuery = None,
    limit: Any = None,
    from_year: Any = None,
    to_year: Any = None,
    lease_factory: LeaseFactory = launch_renderer,
    search: SearchFunc = search_news,
    config: Optional[Settings] = None,
) -> Dict[str, Any]:
    """
    Search, then resolve each shown link to the publisher URL.

    Items keep the aggregator link as googleLink and carry the resolved URL
    as link. A link that can't be navigated stays as it was. No browser is
    launched when the search finds nothing.

    Raises:
        FetchError: If the feed search fails
        LaunchFailure: If the browser can't be launched
    """
    config = config or settings
    found = await search(query, sub_query=sub_query, from_year=from_year, to_year=to_year)
    payload = found.to_dict(limit=search_limit(limit, config))
    if not found.items:
        return payload

    shown = found.items[:payload["count"]]
    items: List[Dict[str, Any]] = []
    slot = RendererSlot(lease_factory)
    await slot.open()
    try:
        for candidate in shown:
            try:
                async with slot.page() as page:
                    resolved = await resolve_link(
                        page,
                        candidate.link,
                        timeout=config.navigation_timeout,
                        settle_delay=config.resolve_settle_delay,
                    )
            except NavigationError as e:
                logger.warning(f"Keeping Google link for {candidate.link}: {e}")
                resolved = candidate.link

            items.append({**candidate.to_dict(), "googleLink": candidate.link, "link": resolved})
            if config.resolved_search_delay > 0:
                await asyncio.sleep(config.resolved_search_delay)
    finally:
        await slot.close()

    logger.info(f"Resolved search '{found.base_query}': {len(items)} of {found.total} links")
    payload["items"] = items
    return payload


async def scrape_urls(
    urls: Sequence[str],
    name: Optional[str] = None,
    out_dir: Optional[str] = None,
    client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
) -> Dict[str, Any]:
    """
    Fetch and extract publisher URLs directly, one after another.

    Failures are recorded per URL and never stop the batch.
    """
    client_factory = client_factory or create_article_client
    items: List[Dict[str, Any]] = []
    errors: List[Dict[str, str]] = []

    async with client_factory() as client:
        for url in urls:
            try:
                page = await fetch_html(client, url)
                items.append(extract_article(page.html, page.final_url).to_dict())
            except Exception as e:
                logger.warning(f"Direct scrape failed for {url}: {e}")
                errors.append({"url": url, "error": str(e) or type(e).__name__})
                continue
            if settings.direct_scrape_delay > 0:
                await asyncio.sleep(settings.direct_scrape_delay)

    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    doc = {
        "generatedAt": utc_now_iso(),
        "count": len(items),
        "failed": len(errors),
        "items": items,
        "errors": errors,
    }
    target_dir = resolve_out_dir(out_dir)
    out_path = save_document(doc, target_dir, name, fallback=f"batch-{stamp}")

    return {
        "name": name or None,
        "outDir": str(target_dir),
        "outPath": str(out_path),
        **doc,
    }


async def run_pipeline_cli(
    query: str,
    sub_query: Optional[str] = None,
    limit: Optional[int] = None,
    from_year: Optional[int] = None,
    to_year: Optional[int] = None,
    name: Optional[str] = None,
    out_dir: Optional[str] = None,
):
    """CLI entry point for the all-scrape flow."""
    result = await run_all_scrape(
        query,
        sub_query=sub_query,
        limit=limit,
        from_year=from_year,
        to_year=to_year,
        name=name,
        out_dir=out_dir,
    )
    print(f"\n=== All-Scrape Results for '{result['baseQuery']}' ===")
    print(f"Found: {result['totalFound']}")
    print(f"Scraped: {result['scrapedCount']}")
    print(f"Failed: {result['failed']}")
    if result["errors"]:
        for error in result["errors"][:20]:
            print(f"  - {error['link']}: {error['error']}")
    print(f"Saved to: {result['outPath'] or '(nothing to save)'}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Search Google News, resolve links and scrape articles")
    parser.add_argument("query", help="Main search term")
    parser.add_argument("--sub-query", help="Extra terms, comma-separated")
    parser.add_argument("--limit", type=int, help=f"Max articles to scrape (default {settings.default_scrape_limit})")
    parser.add_argument("--from-year", type=int, help="First year of a year-by-year search")
    parser.add_argument("--to-year", type=int, help="Last year of a year-by-year search")
    parser.add_argument("--name", help="Output file name (without .json)")
    parser.add_argument("--out-dir", help=f"Output directory (default ./{settings.output_dir})")
    args = parser.parse_args()

    asyncio.run(run_pipeline_cli(
        args.query,
        sub_query=args.sub_query,
        limit=args.limit,
        from_year=args.from_year,
        to_year=args.to_year,
        name=args.name,
        out_dir=args.out_dir,
    ))
