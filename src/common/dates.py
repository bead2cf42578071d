"""
Date helpers shared by the feed search and the article extractor.

Feed items carry RFC 822 dates, article pages carry whatever the CMS emits.
Both end up as ISO-8601 UTC strings ("2024-05-01T08:30:00.000Z").
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional, Union

from dateutil import parser as date_parser


@dataclass(frozen=True)
class FeedDate:
    """Date fields derived from a feed entry."""
    pub_date: Optional[str] = None  # RFC 1123, e.g. "Wed, 01 May 2024 08:30:00 GMT"
    iso_date: Optional[str] = None
    year: Optional[int] = None
    month: Optional[str] = None  # English month name
    day: Optional[str] = None  # Zero-padded day of month


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a date string into an aware UTC datetime.

    Naive values are taken as UTC. Returns None for empty or unparseable input.
    """
    if value is None:
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    # Out-of-range offsets and years fail in astimezone, not in parse
    try:
        dt = value if isinstance(value, datetime) else date_parser.parse(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, TypeError, OverflowError):
        return None


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as ISO-8601 UTC with millisecond precision and a Z suffix."""
    if dt is None:
        return None
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def iso_or_none(value: Optional[str]) -> Optional[str]:
    """Normalize a raw date string to ISO-8601 UTC, or None if unparseable."""
    return to_iso(parse_datetime(value))


def format_feed_date(value: Union[str, datetime, None]) -> FeedDate:
    """Derive pubDate/isoDate/year/month/day from a feed date. All None when unparseable."""
    dt = parse_datetime(value)
    if dt is None:
        return FeedDate()

    return FeedDate(
        pub_date=format_datetime(dt, usegmt=True),
        iso_date=to_iso(dt),
        year=dt.year,
        month=dt.strftime("%B"),
        day=f"{dt.day:02d}",
    )


def utc_now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))
