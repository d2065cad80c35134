"""Multicast delivery of playback events.

The owner keeps the ``EventBus`` and publishes through it. Listeners only get the ``EventStream``
view, which can subscribe and unsubscribe but not publish.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Generic, TypeVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncIterator, Callable

__all__: list[str] = ["EventBus", "EventStream"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

T = TypeVar("T")


class EventBus(Generic[T]):
    """Synchronous, unbuffered fan-out of events to subscribers.

    ``publish`` calls every subscriber attached at that moment, in subscription order, before it
    returns. The subscriber list is copied first, so subscribing or unsubscribing from inside a
    callback only affects later events. A subscriber that raises is logged and skipped.
    """

    def __init__(self) -> None:
        self._subscribers: list[Callable[[T], None]] = []
        self._stream: EventStream[T] = EventStream(self)

    @property
    def stream(self) -> EventStream[T]:
        """Subscriber-facing view of this bus."""
        return self._stream

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Attach a subscriber.

        Args:
            callback (Callable[[T], None]): Called with each published event.

        Returns:
            Callable[[], None]: A function that detaches this subscription.
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: Callable[[T], None]) -> None:
        """Detach a subscriber. Unknown callbacks are ignored."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            logger.debug("Unsubscribe ignored for unknown subscriber: %r", callback)

    def publish(self, event: T) -> None:
        for callback in tuple(self._subscribers):
            try:
                callback(event)
            except Exception as err:  # noqa: BLE001
                logger.error("Event subscriber %r failed on %s: %s", callback, event, err)


class EventStream(Generic[T]):
    """Read-only view of an ``EventBus``."""

    def __init__(self, bus: EventBus[T]) -> None:
        self._bus: EventBus[T] = bus

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        return self._bus.subscribe(callback)

    def unsubscribe(self, callback: Callable[[T], None]) -> None:
        self._bus.unsubscribe(callback)

    async def listen(self) -> AsyncIterator[T]:
        """Yield events published after iteration starts, in publication order.

        Events are queued while the consumer is busy, so none are lost between iterations. The
        subscription ends when the iteration is closed or cancelled.
        """
        queue: asyncio.Queue[T] = asyncio.Queue()
        unsubscribe: Callable[[], None] = self._bus.subscribe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()
