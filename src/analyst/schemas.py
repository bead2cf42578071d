"""
Records flowing through the harvesting pipeline.

CandidateItem (from the feed search) -> ResolvedArticle (after resolve + extract)
or FailureRecord (after the retry budget is spent). BatchDocument is what gets
written to disk.

All records are immutable once built. to_dict() emits the camelCase keys the
HTTP layer and the UI read.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..common.dates import FeedDate, format_feed_date


@dataclass(frozen=True)
class CandidateItem:
    """A link found by the feed search, not yet resolved."""
    link: str
    title: str = ""
    source: Optional[str] = None
    source_url: Optional[str] = None
    pub_date: Optional[str] = None
    published_at: Optional[str] = None  # ISO-8601 UTC, None when the feed date was unparseable
    year: Optional[int] = None
    month: Optional[str] = None
    day: Optional[str] = None

    @classmethod
    def from_feed(
        cls,
        link: str,
        title: str = "",
        source: Optional[str] = None,
        source_url: Optional[str] = None,
        published=None,
    ) -> "CandidateItem":
        """Build a candidate, deriving the date fields from the raw feed date."""
        dates: FeedDate = format_feed_date(published)
        return cls(
            link=link,
            title=title,
            source=source,
            source_url=source_url,
            pub_date=dates.pub_date,
            published_at=dates.iso_date,
            year=dates.year,
            month=dates.month,
            day=dates.day,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CandidateItem":
        """Accept the wire format (camelCase) as produced by to_dict()."""
        return cls(
            link=data["link"],
            title=data.get("title") or "",
            source=data.get("source"),
            source_url=data.get("sourceUrl"),
            pub_date=data.get("pubDate"),
            published_at=data.get("isoDate"),
            year=data.get("year"),
            month=data.get("month"),
            day=data.get("day"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "source": self.source,
            "sourceUrl": self.source_url,
            "pubDate": self.pub_date,
            "isoDate": self.published_at,
            "year": self.year,
            "month": self.month,
            "day": self.day,
        }


@dataclass(frozen=True)
class ExtractedArticle:
    """Structured content pulled out of one article page."""
    url: str
    canonical: Optional[str] = None
    domain: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    lang: Optional[str] = None
    section: Optional[str] = None
    tags: Optional[Tuple[str, ...]] = None
    published_at: Optional[str] = None
    updated_at: Optional[str] = None
    word_count: int = 0
    paragraphs: Tuple[str, ...] = ()
    text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "canonical": self.canonical,
            "domain": self.domain,
            "title": self.title,
            "author": self.author,
            "lang": self.lang,
            "section": self.section,
            "tags": list(self.tags) if self.tags is not None else None,
            "publishedAt": self.published_at,
            "updatedAt": self.updated_at,
            "wordCount": self.word_count,
            "paragraphs": list(self.paragraphs),
            "text": self.text,
        }


@dataclass(frozen=True)
class ResolvedArticle:
    """A candidate that was resolved, fetched and extracted."""
    candidate: CandidateItem
    resolved_url: str
    article: ExtractedArticle

    @property
    def link(self) -> str:
        return self.candidate.link

    def to_dict(self) -> Dict[str, Any]:
        c = self.candidate
        a = self.article
        return {
            # search metadata
            "link": c.link,
            "source": c.source,
            "sourceUrl": c.source_url,
            "pubDate": c.pub_date,
            "isoDate": c.published_at,
            "year": c.year,
            "month": c.month,
            "day": c.day,
            # resolved / scraped
            "resolvedUrl": self.resolved_url,
            "canonical": a.canonical,
            "domain": a.domain,
            "title": a.title,
            "author": a.author,
            "lang": a.lang,
            "section": a.section,
            "tags": list(a.tags) if a.tags is not None else None,
            "publishedAt": a.published_at,
            "updatedAt": a.updated_at,
            "wordCount": a.word_count,
            "paragraphs": list(a.paragraphs),
            "text": a.text,
        }


@dataclass(frozen=True)
class FailureRecord:
    """A candidate that failed every attempt."""
    link: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"link": self.link, "error": self.error}


@dataclass(frozen=True)
class BatchDocument:
    """The persisted result of one all-scrape run."""
    query: str
    generated_at: str
    total_found: int
    sub_query: Optional[Any] = None
    base_query: Optional[str] = None
    from_year: Optional[int] = None
    to_year: Optional[int] = None
    items: List[ResolvedArticle] = field(default_factory=list)
    errors: List[FailureRecord] = field(default_factory=list)

    @property
    def scraped_count(self) -> int:
        return len(self.items)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "subQuery": self.sub_query or None,
            "baseQuery": self.base_query,
            "fromYear": self.from_year,
            "toYear": self.to_year,
            "totalFound": self.total_found,
            "scrapedCount": self.scraped_count,
            "failed": self.failed,
            "generatedAt": self.generated_at,
            "items": [item.to_dict() for item in self.items],
            "errors": [err.to_dict() for err in self.errors],
        }
