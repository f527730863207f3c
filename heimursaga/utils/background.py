"""Fire-and-forget coroutine runner.

Keeps a strong reference to every spawned task so the event loop cannot
garbage-collect it mid-flight, and logs failures instead of surfacing them.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Set

logger = logging.getLogger(__name__)


class BackgroundRunner:
    def __init__(self, name: str):
        self.name = name
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> asyncio.Task:
        """Schedule ``func(*args, **kwargs)`` on the running loop without awaiting it."""
        task = asyncio.create_task(self._guarded(func, *args, **kwargs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> None:
        try:
            await func(*args, **kwargs)
        except Exception:
            logger.exception(f"[{self.name}] background task {getattr(func, '__name__', func)!r} failed")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every outstanding task, including ones spawned while waiting."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
