"""
News Harvester - Main Application Entry Point

HTTP front door for the harvesting pipeline:
- POST /resolve          one Google News link -> publisher URL
- POST /search           Google News RSS search (optionally year by year)
- POST /resolved-search  the same search with each link resolved to the publisher URL
- POST /scrape           scrape known publisher URLs into one JSON file
- POST /all-scrape       search -> resolve -> scrape -> one JSON file

Errors are returned as {"error": "..."}: 400 for bad input, 502 when the
browser can't navigate, 500 for everything else.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .common.errors import FetchError, HarvestError, LaunchFailure, NavigationError
from .config import settings
from .harvester.google_news_rss import search_news
from .harvester.pipeline import resolved_search, run_all_scrape, scrape_urls, search_limit
from .harvester.renderer import RendererSlot, launch_renderer
from .harvester.resolver import resolve_link

logger = logging.getLogger(__name__)


# ----- Request Models -----

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ResolveRequest(_CamelModel):
    url: Optional[str] = None


class SearchRequest(_CamelModel):
    query: Optional[Any] = None
    sub_query: Optional[Union[str, List[str]]] = Field(default=None, alias="subQuery")
    limit: Optional[Any] = None
    from_year: Optional[Any] = Field(default=None, alias="fromYear")
    to_year: Optional[Any] = Field(default=None, alias="toYear")


class AllScrapeRequest(SearchRequest):
    name: Optional[str] = None
    out_dir: Optional[str] = Field(default=None, alias="outDir")


class ScrapeRequest(_CamelModel):
    url: Optional[Any] = None
    urls: Optional[List[Any]] = None
    name: Optional[str] = None
    out_dir: Optional[str] = Field(default=None, alias="outDir")


# ----- Shared browser for /resolve -----

class _ResolverBrowser:
    """Lazily launched renderer reused across /resolve calls."""

    def __init__(self):
        self.slot: Optional[RendererSlot] = None
        self._lock = asyncio.Lock()

    async def get(self) -> RendererSlot:
        async with self._lock:
            if self.slot is None:
                slot = RendererSlot(launch_renderer)
                await slot.open()
                self.slot = slot
            return self.slot

    async def close(self):
        async with self._lock:
            if self.slot is not None:
                await self.slot.close()
                self.slot = None


resolver_browser = _ResolverBrowser()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting News Harvester (output dir: {settings.output_dir})")

    yield

    try:
        await resolver_browser.close()
        logger.info("Resolver browser closed")
    except Exception as e:
        logger.warning(f"Error closing resolver browser: {e}")


app = FastAPI(
    title="News Harvester",
    description="Resolve Google News links and harvest article content",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
_allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]
if settings.frontend_url and settings.frontend_url not in _allowed_origins:
    _allowed_origins.append(settings.frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# ----- Helpers -----

def _require_query(query: Any) -> str:
    if not query or not isinstance(query, str):
        raise HTTPException(status_code=400, detail="query is required (string)")
    return query


def _url_list(body: ScrapeRequest) -> List[str]:
    if body.urls:
        return [u for u in (str(u).strip() for u in body.urls) if u]
    if isinstance(body.url, str) and body.url.strip():
        return [body.url.strip()]
    return []


# ----- Routes -----

@app.get("/")
async def root():
    return {"status": "ok", "message": "News harvester is running"}


@app.post("/resolve")
async def resolve(body: ResolveRequest):
    """Resolve one aggregator link to the publisher URL."""
    if not body.url or not body.url.strip():
        raise HTTPException(status_code=400, detail="url is required")
    url = body.url.strip()

    try:
        slot = await resolver_browser.get()
        async with slot.page() as page:
            resolved = await resolve_link(page, url)
    except NavigationError as e:
        logger.warning(f"Resolve failed for {url}: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except LaunchFailure as e:
        logger.error(f"Browser launch failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"input": url, "resolved": resolved}


@app.post("/search")
async def search(body: SearchRequest):
    """Search Google News RSS; results newest first, limited for display."""
    query = _require_query(body.query)

    try:
        found = await search_news(
            query,
            sub_query=body.sub_query,
            from_year=body.from_year,
            to_year=body.to_year,
        )
    except FetchError as e:
        logger.error(f"Search failed for '{query}': {e}")
        raise HTTPException(status_code=500, detail=str(e) or "Search failed")

    return found.to_dict(limit=search_limit(body.limit))


@app.post("/resolved-search")
async def resolved_search_route(body: SearchRequest):
    """Search, then resolve every shown Google News link with the browser."""
    query = _require_query(body.query)

    try:
        return await resolved_search(
            query,
            sub_query=body.sub_query,
            limit=body.limit,
            from_year=body.from_year,
            to_year=body.to_year,
        )
    except HarvestError as e:
        logger.error(f"Resolved search failed for '{query}': {e}")
        raise HTTPException(status_code=500, detail=str(e) or "Resolved search failed")


@app.post("/scrape")
async def scrape(body: ScrapeRequest):
    """Scrape known article URLs (no browser) into one combined JSON file."""
    urls = _url_list(body)
    if not urls:
        raise HTTPException(
            status_code=400,
            detail="Provide 'url' (string) or 'urls' (array of strings).",
        )

    try:
        return await scrape_urls(urls, name=body.name, out_dir=body.out_dir)
    except OSError as e:
        logger.error(f"Could not save scrape result: {e}")
        raise HTTPException(status_code=500, detail=str(e) or "Scrape failed")


@app.post("/all-scrape")
async def all_scrape(body: AllScrapeRequest):
    """Search, resolve every hit, scrape, and save one combined JSON file."""
    query = _require_query(body.query)

    try:
        return await run_all_scrape(
            query,
            sub_query=body.sub_query,
            limit=body.limit,
            from_year=body.from_year,
            to_year=body.to_year,
            name=body.name,
            out_dir=body.out_dir,
        )
    except (HarvestError, OSError) as e:
        logger.error(f"All-scrape failed for '{query}': {e}")
        raise HTTPException(status_code=500, detail=str(e) or "All-scrape failed")


def run_server():
    """Run the FastAPI server."""
    import uvicorn
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )


if __name__ == "__main__":
    run_server()
