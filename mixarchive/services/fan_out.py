import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, NamedTuple, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 50


class DispatchOutcome(NamedTuple):
    """Result of running the worker for one item."""
    item: Any
    result: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FanOutDispatcher:
    """Run a worker over many items with at most `concurrency_limit` in flight.

    There is no batching: as soon as one invocation finishes the next queued
    item starts. Each item's outcome is isolated; one failure never cancels or
    blocks the others.
    """

    def __init__(self, concurrency_limit: int = DEFAULT_CONCURRENCY):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        self.concurrency_limit = concurrency_limit

    async def dispatch(
        self,
        items: Iterable[T],
        worker: Callable[[T], Awaitable[Any]],
        concurrency_limit: Optional[int] = None,
    ) -> List[DispatchOutcome]:
        limit = concurrency_limit or self.concurrency_limit
        semaphore = asyncio.Semaphore(limit)

        async def run(item: T) -> DispatchOutcome:
            async with semaphore:
                try:
                    return DispatchOutcome(item, await worker(item))
                except Exception as e:
                    logger.warning("Worker failed for %r: %s", item, e)
                    return DispatchOutcome(item, error=e)

        outcomes = await asyncio.gather(*(run(item) for item in items))
        failed = sum(1 for o in outcomes if not o.ok)
        if failed:
            logger.warning("Dispatch finished with %d of %d failures", failed, len(outcomes))
        return list(outcomes)
