from .renderer import RendererLease, RendererSlot, launch_renderer
from .resolver import resolve_link, collect_candidate_urls
from .worker_pool import ClaimCursor, run_worker_pool
from .orchestrator import (
    BatchOrchestrator,
    BatchResult,
    clamp_limit,
)
from .google_news_rss import SearchResult, search_news

__all__ = [
    "RendererLease",
    "RendererSlot",
    "launch_renderer",
    "resolve_link",
    "collect_candidate_urls",
    "ClaimCursor",
    "run_worker_pool",
    "BatchOrchestrator",
    "BatchResult",
    "clamp_limit",
    "SearchResult",
    "search_news",
]
