"""Explicit change events and their dispatch to async handlers."""

from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()


class LogsChanged(BaseModel):
    """A user's study log collection was modified."""

    user_id: str | None


Handler = Callable[[Any], Awaitable[Any]]


class EventDispatcher:
    """Routes events to the handlers registered for their type.

    Handlers run one after another in registration order. A failing handler
    is logged and does not stop the rest or reach the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    async def dispatch(self, event: BaseModel) -> list[Any]:
        """Run every handler for ``event``.

        Returns:
            Results of the handlers that completed.
        """
        results = []
        for handler in self._handlers.get(type(event), []):
            try:
                results.append(await handler(event))
            except Exception:
                logger.exception(
                    "event_handler_failed",
                    event_type=type(event).__name__,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
        return results
