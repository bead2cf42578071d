"""
Bounded pull-based worker pool.

N worker tasks share one cursor over the item list. Each worker claims the
next index, awaits the handler, and goes back for more until the list is
exhausted. Unlike a Semaphore + gather over every item, only N coroutines
exist at a time regardless of list size.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClaimCursor(Generic[T]):
    """
    Hands out each item exactly once.

    claim() has no await between reading and advancing the index, so two
    tasks on the same event loop can never claim the same item.
    """

    def __init__(self, items: Sequence[T]):
        self._items = items
        self._next = 0

    @property
    def claimed(self) -> int:
        return self._next

    def claim(self) -> Optional[Tuple[int, T]]:
        if self._next >= len(self._items):
            return None
        index = self._next
        self._next += 1
        return index, self._items[index]


async def run_worker_pool(
    items: Sequence[T],
    handler: Callable[[T], Awaitable[None]],
    concurrency: int,
) -> int:
    """
    Run `handler` over every item with at most `concurrency` in flight.

    The handler is responsible for its own error isolation. If it raises,
    the remaining workers are cancelled and the error propagates.

    Returns:
        Number of items handed to the handler
    """
    if not items:
        return 0

    cursor: ClaimCursor[T] = ClaimCursor(items)
    worker_count = max(1, min(concurrency, len(items)))

    async def worker(worker_id: int):
        while True:
            claimed = cursor.claim()
            if claimed is None:
                return
            index, item = claimed
            logger.debug(f"Worker {worker_id} took item {index}")
            await handler(item)

    tasks: List[asyncio.Task] = [asyncio.create_task(worker(i)) for i in range(worker_count)]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return cursor.claimed
