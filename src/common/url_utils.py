"""
Shared URL helpers.

Blocked hosts are the aggregator's own domains and its anti-bot challenge
domains. A URL on one of them is never accepted as a resolved article.
"""

from typing import Iterable, Optional
from urllib.parse import urlparse

# Aggregator + challenge domains (subdomains match too)
BLOCKED_HOSTS = (
    "google.com",
    "news.google.com",
    "www.google.com",
    "gstatic.com",
    "cloudflare.com",
    "www.cloudflare.com",
    "challenges.cloudflare.com",
)


def get_hostname(url: Optional[str]) -> Optional[str]:
    """
    Return the lowercase hostname of an absolute http(s) URL.

    Returns None for empty, relative, or malformed URLs.

    Examples:
        >>> get_hostname("https://News.Example.com/a?b=1")
        'news.example.com'
        >>> get_hostname("not a url") is None
        True
    """
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not host:
        return None
    return host.lower()


def host_matches(host: str, domains: Iterable[str]) -> bool:
    """Exact host or subdomain match: host == d or host ends with "." + d."""
    return any(host == d or host.endswith("." + d) for d in domains)


def is_blocked_url(url: Optional[str], blocked_hosts: Iterable[str] = BLOCKED_HOSTS) -> bool:
    """
    Check whether a URL points at a blocked host.

    Malformed URLs count as blocked (fail closed).

    Examples:
        >>> is_blocked_url("https://news.google.com/rss/articles/abc")
        True
        >>> is_blocked_url("https://www.prothomalo.com/bangladesh/abc")
        False
        >>> is_blocked_url("::::")
        True
    """
    host = get_hostname(url)
    if host is None:
        return True
    return host_matches(host, blocked_hosts)


def get_domain(url: Optional[str]) -> Optional[str]:
    """Hostname without a leading "www.", used as the article's domain."""
    host = get_hostname(url)
    if host is None:
        return None
    if host.startswith("www."):
        host = host[4:]
    return host
