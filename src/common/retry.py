"""
Retry policy for per-item work.

The policy only knows how many attempts to make and how long to wait between
them; the operation is passed in. Backoff grows linearly with the attempt
number: delay(n) = base_delay + step_delay * n.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from .errors import RETRYABLE_ERRORS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often to retry and how long to wait in between."""
    max_attempts: int = 3
    base_delay: float = 0.4
    step_delay: float = 0.4
    retry_on: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.per_item_retries + 1,
            base_delay=settings.retry_base_delay,
            step_delay=settings.retry_step_delay,
        )

    def backoff(self, attempt: int) -> float:
        """Delay in seconds after failed attempt number `attempt` (0-based)."""
        return self.base_delay + self.step_delay * attempt

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "") -> T:
        """
        Run `operation` until it succeeds or the attempts are used up.

        Errors not listed in `retry_on` propagate immediately.

        Raises:
            The last retryable error once every attempt has failed
        """
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except self.retry_on as e:
                if attempt >= self.max_attempts - 1:
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    f"Attempt {attempt + 1}/{self.max_attempts} failed for {label or 'operation'}: {e}. "
                    f"Retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        # Unreachable: the loop either returns or raises
        raise RuntimeError("RetryPolicy.run exhausted without result")
