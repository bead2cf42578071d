"""
Exception taxonomy for the harvesting pipeline.

Per-item errors (FetchError, NavigationError, ParseFailure) are retried by the
worker and end up as failure records. LaunchFailure is fatal for a run.

A resolver that cannot find anything better than the aggregator link is not an
error: it returns the input link unchanged.
"""

from typing import Optional


class HarvestError(Exception):
    """Base class for pipeline errors."""
    pass


class FetchError(HarvestError):
    """Raised when an HTTP fetch times out, fails in transport, or returns a bad status."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NavigationError(HarvestError):
    """Raised when browser navigation times out or the page crashes."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ParseFailure(HarvestError):
    """Raised when HTML cannot be turned into a document at all."""
    pass


class LaunchFailure(HarvestError):
    """Raised when the browser process cannot be started."""
    pass


# Errors a single item attempt may raise and that are worth another attempt
RETRYABLE_ERRORS = (FetchError, NavigationError, ParseFailure)
