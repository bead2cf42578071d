"""
Batch Orchestrator - Resolves and scrapes a list of candidate links.

Handles:
- Launching one headless browser for the run and closing it at the end
- Splitting the work into sequential chunks
- A bounded worker pool inside each chunk
- Per-item retry with linear backoff
- Rotating the browser every N processed items to cap memory growth

Error isolation: one bad article never crashes the run. Every candidate ends
up either as a ResolvedArticle or as a FailureRecord. The only error that
escapes run() is LaunchFailure.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence

import httpx

from ..analyst.extractor import extract_article
from ..analyst.schemas import CandidateItem, FailureRecord, ResolvedArticle
from ..common.errors import LaunchFailure
from ..common.http_client import create_article_client, fetch_html
from ..common.retry import RetryPolicy
from ..config.settings import Settings, settings as default_settings
from .renderer import LeaseFactory, RendererSlot, launch_renderer
from .resolver import resolve_link
from .worker_pool import run_worker_pool

# Configure logging
logging.basicConfig(level=default_settings.log_level)
logger = logging.getLogger(__name__)


def clamp_limit(limit: Any, config: Optional[Settings] = None) -> int:
    """
    Turn caller input into a usable item limit.

    Anything that isn't a positive number falls back to the default limit;
    anything above the ceiling is capped.
    """
    config = config or default_settings
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return config.default_scrape_limit

    if value <= 0:
        return config.default_scrape_limit
    return min(value, config.max_scrape_limit)


def chunked(items: Sequence[Any], size: int) -> List[Sequence[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


@dataclass
class BatchResult:
    """Successes and failures of one run, in completion order."""
    items: List[ResolvedArticle] = field(default_factory=list)
    errors: List[FailureRecord] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.items) + len(self.errors)


class RunMetrics:
    """Counters for one orchestrator run."""

    def __init__(self, total: int):
        self.total = total
        self.scraped = 0
        self.failed = 0
        self.rotations = 0
        self.chunks = 0
        self.started_at = datetime.now(timezone.utc)
        self.completed_at: Optional[datetime] = None

    def complete(self):
        self.completed_at = datetime.now(timezone.utc)

    @property
    def duration_seconds(self) -> float:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0

    def log_metrics(self):
        """Log performance metrics."""
        logger.info(
            f"METRICS batch total={self.total} "
            f"scraped={self.scraped} "
            f"failed={self.failed} "
            f"chunks={self.chunks} "
            f"rotations={self.rotations} "
            f"duration_sec={self.duration_seconds:.2f}"
        )


class BatchOrchestrator:
    """
    Runs resolve -> fetch -> extract over a candidate list.

    The renderer factory, retry policy and HTTP client factory are injectable
    so tests can run the whole state machine without a real browser.
    """

    def __init__(
        self,
        lease_factory: LeaseFactory = launch_renderer,
        retry_policy: Optional[RetryPolicy] = None,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.lease_factory = lease_factory
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.config)
        self.client_factory = client_factory or create_article_client

        self._slot: Optional[RendererSlot] = None
        self._client: Optional[httpx.AsyncClient] = None
        self._result = BatchResult()
        self._metrics: Optional[RunMetrics] = None
        self._processed = 0

    @property
    def processed(self) -> int:
        return self._processed

    async def _attempt(self, candidate: CandidateItem) -> ResolvedArticle:
        """One resolve + fetch + extract attempt. The page is closed on every path."""
        # Page is held for the resolve step only; fetch and extract go over httpx
        async with self._slot.page() as page:
            resolved_url = await resolve_link(
                page,
                candidate.link,
                timeout=self.config.navigation_timeout,
                settle_delay=self.config.resolve_settle_delay,
            )

        fetched = await fetch_html(self._client, resolved_url)
        article = extract_article(fetched.html, fetched.final_url)
        return ResolvedArticle(candidate=candidate, resolved_url=resolved_url, article=article)

    async def _process(self, candidate: CandidateItem):
        try:
            record = await self.retry_policy.run(
                lambda: self._attempt(candidate),
                label=candidate.link,
            )
            self._result.items.append(record)
            self._metrics.scraped += 1
            logger.debug(f"Scraped {candidate.link} -> {record.resolved_url}")
        except LaunchFailure:
            raise
        except Exception as e:
            message = str(e) or type(e).__name__
            self._result.errors.append(FailureRecord(link=candidate.link, error=message))
            self._metrics.failed += 1
            logger.error(f"Giving up on {candidate.link}: {message}")

        self._processed += 1
        if self._processed % self.config.restart_every == 0:
            logger.info(f"Processed {self._processed} items, rotating browser")
            await self._slot.rotate()
            self._metrics.rotations += 1

        if self.config.polite_delay > 0:
            await asyncio.sleep(self.config.polite_delay)

    async def run(self, candidates: Sequence[CandidateItem], limit: Any = None) -> BatchResult:
        """
        Resolve and scrape up to `limit` candidates.

        Returns:
            BatchResult with items and errors; len(items) + len(errors)
            equals the number of candidates attempted

        Raises:
            LaunchFailure: If the browser can't be launched (or relaunched)
        """
        work = list(candidates)[:clamp_limit(limit, self.config)]
        self._result = BatchResult()
        self._metrics = RunMetrics(total=len(work))
        self._processed = 0

        logger.info(
            f"Starting batch: {len(work)} items, concurrency={self.config.concurrency}, "
            f"chunk_size={self.config.chunk_size}, restart_every={self.config.restart_every}"
        )

        self._slot = RendererSlot(self.lease_factory)
        try:
            await self._slot.open()
            async with self.client_factory() as client:
                self._client = client
                chunks = chunked(work, self.config.chunk_size)
                for number, chunk in enumerate(chunks, start=1):
                    logger.info(f"Chunk {number}/{len(chunks)}: {len(chunk)} items")
                    await run_worker_pool(chunk, self._process, self.config.concurrency)
                    self._metrics.chunks += 1
                    if number < len(chunks) and self.config.chunk_pause > 0:
                        await asyncio.sleep(self.config.chunk_pause)
        finally:
            self._client = None
            await self._slot.close()
            self._metrics.complete()
            self._metrics.log_metrics()

        return self._result
