"""
Common utilities and shared modules.
"""

from .errors import (
    HarvestError,
    FetchError,
    NavigationError,
    ParseFailure,
    LaunchFailure,
)

from .http_client import (
    create_scraper_client,
    create_article_client,
    create_feed_client,
    fetch_html,
    FetchedPage,
    USER_AGENT_BROWSER,
)

from .retry import RetryPolicy

from .url_utils import (
    BLOCKED_HOSTS,
    is_blocked_url,
    get_domain,
    get_hostname,
)

__all__ = [
    # Errors
    "HarvestError",
    "FetchError",
    "NavigationError",
    "ParseFailure",
    "LaunchFailure",
    # HTTP client utilities
    "create_scraper_client",
    "create_article_client",
    "create_feed_client",
    "fetch_html",
    "FetchedPage",
    "USER_AGENT_BROWSER",
    # Retry
    "RetryPolicy",
    # URL helpers
    "BLOCKED_HOSTS",
    "is_blocked_url",
    "get_domain",
    "get_hostname",
]
