"""In-process event dispatcher.

``trigger`` is best-effort and fire-and-forget: every registered handler runs
as its own background task, and a failing handler is logged without affecting
the caller or the other handlers.
"""

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List

from heimursaga.utils.background import BackgroundRunner

logger = logging.getLogger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class Events:
    NOTIFICATION_CREATE = "notification.create"
    ENTRY_CREATED = "entry.created"


class EventDispatcher:
    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._runner = BackgroundRunner("events")

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def clear(self) -> None:
        self._handlers.clear()

    def trigger(self, event: str, payload: Dict[str, Any]) -> None:
        handlers = list(self._handlers.get(event, ()))
        if not handlers:
            logger.debug(f"No handlers registered for event {event}")
            return
        for handler in handlers:
            self._runner.spawn(handler, dict(payload))

    async def drain(self) -> None:
        await self._runner.drain()


dispatcher = EventDispatcher()
