"""Sequential broadcast of run events to subscribers."""

import inspect
from collections import deque
from typing import Any

from convergereport.core.logging import get_logger
from convergereport.events.base import EVENT_NAMES

logger = get_logger(__name__)


class EventDispatcher:
    """Broadcast run events to an explicit subscriber list.

    Each event reaches every subscriber, in registration order, and every
    handler runs to completion before the next one is called. A subscriber
    unregistered while an event is in flight receives nothing further,
    including the remainder of that event.
    """

    def __init__(self, *subscribers: Any):
        """Initialize dispatcher.

        Args:
            *subscribers: Subscribers to register in order
        """
        self._subscribers: list[Any] = list(subscribers)
        self._queue: deque[tuple[str, tuple[Any, ...], dict[str, Any]]] = deque()
        self._depth = 0

    @property
    def subscribers(self) -> tuple[Any, ...]:
        return tuple(self._subscribers)

    def register(self, subscriber: Any) -> None:
        """Add a subscriber to the end of the broadcast list."""
        self._subscribers.append(subscriber)

    def unregister(self, subscriber: Any) -> None:
        """Remove a subscriber. Unknown subscribers are ignored."""
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)
            logger.debug("Subscriber unregistered", subscriber=type(subscriber).__name__)

    def is_registered(self, subscriber: Any) -> bool:
        return subscriber in self._subscribers

    def enqueue(self, event: str, *args: Any, **kwargs: Any) -> None:
        """Schedule an event for delivery after the event currently in flight.

        Outside a dispatch the event waits for the next ``dispatch`` or for
        ``flush``.

        Args:
            event: Event name
            *args: Positional event arguments
            **kwargs: Keyword event arguments
        """
        self._check_event(event)
        self._queue.append((event, args, kwargs))

    @property
    def pending(self) -> int:
        """Number of enqueued events not yet delivered."""
        return len(self._queue)

    async def dispatch(self, event: str, *args: Any, **kwargs: Any) -> None:
        """Deliver an event to every registered subscriber.

        Events enqueued while this event was being delivered are dispatched
        once the outermost dispatch has reached every subscriber.

        Args:
            event: Event name
            *args: Positional event arguments
            **kwargs: Keyword event arguments
        """
        self._check_event(event)
        self._depth += 1
        try:
            await self._broadcast(event, args, kwargs)
        finally:
            self._depth -= 1

        if self._depth == 0:
            await self._drain()

    async def flush(self) -> None:
        """Deliver events enqueued outside any dispatch.

        Inside a dispatch this is a no-op; the outermost dispatch drains the
        queue when it finishes.
        """
        if self._depth == 0:
            await self._drain()

    async def _drain(self) -> None:
        while self._queue:
            queued, queued_args, queued_kwargs = self._queue.popleft()
            await self.dispatch(queued, *queued_args, **queued_kwargs)

    async def _broadcast(self, event: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        for subscriber in tuple(self._subscribers):
            if subscriber not in self._subscribers:
                continue
            handler = getattr(subscriber, event, None)
            if handler is None:
                continue
            result = handler(*args, **kwargs)
            if inspect.isawaitable(result):
                await result

    @staticmethod
    def _check_event(event: str) -> None:
        if event not in EVENT_NAMES:
            raise ValueError(f"Unknown run event: {event}")
