import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from mixarchive.exceptions import ExtractionTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TrackPoller:
    """Bounded polling for data that a page populates after initial render.

    Attempts run strictly one after another with a fixed delay between them
    (never before the first). The first non-None result is returned; once
    `max_attempts` are used up, `ExtractionTimeout` is raised.
    """

    def __init__(self, max_attempts: int = 5, delay_seconds: float = 0.09, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    async def poll(self, attempt: Callable[[], Awaitable[Optional[T]]], url: str = "") -> T:
        for i in range(self.max_attempts):
            if i:
                await self._sleep(self.delay_seconds)
            result = await attempt()
            if result is not None:
                return result
            logger.debug("Attempt %d/%d returned nothing for %s", i + 1, self.max_attempts, url)
        raise ExtractionTimeout(url, self.max_attempts)
