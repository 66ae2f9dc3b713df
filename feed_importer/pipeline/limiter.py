import asyncio
from typing import Any, Awaitable, Callable


class ConcurrencyLimiter:
    """Cap how many coroutines run at the same time.

    Units beyond the cap wait in submission order and start as slots free up.
    A slot is held until its unit finishes, successfully or not.

    Example:
        >>> limiter = ConcurrencyLimiter(35)
        >>> results = await asyncio.gather(
        ...     *(limiter.run(processor.process, item, i) for i, item in enumerate(items))
        ... )
    """

    def __init__(self, max_concurrency: int):
        """Initialize the limiter.

        Args:
            max_concurrency: Maximum number of units running at once
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self.active = 0
        self.waiting = 0
        self.peak = 0

    async def run(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Await ``func(*args, **kwargs)`` while holding one slot."""
        self.waiting += 1
        try:
            await self._semaphore.acquire()
        finally:
            self.waiting -= 1

        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            return await func(*args, **kwargs)
        finally:
            self.active -= 1
            self._semaphore.release()
