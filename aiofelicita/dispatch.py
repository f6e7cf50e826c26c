"""Fan out of scale events to registered callbacks and queues."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from typing import Generic, TypeVar

_LOGGER = logging.getLogger(__name__)

EventT = TypeVar("EventT")


class EventDispatcher(Generic[EventT]):
    """Explicit list of sinks an event is delivered to.

    Every event goes to all callbacks first, then to all queues, each in
    registration order. Queues never block the producer: if a queue is full
    the event is dropped for that queue.
    """

    def __init__(self, name: str, logger: logging.Logger | None = None) -> None:
        self._name = name
        self._logger = logger or _LOGGER
        self._callbacks: list[Callable[[EventT], None]] = []
        self._queues: list[asyncio.Queue[EventT]] = []

    def register_callback(self, callback: Callable[[EventT], None]) -> Callable[[], None]:
        """Register a callback, returning a function to unregister it."""

        def unregister_callback() -> None:
            self._callbacks.remove(callback)

        self._callbacks.append(callback)
        return unregister_callback

    def register_queue(self, queue: asyncio.Queue[EventT]) -> Callable[[], None]:
        """Register a queue, returning a function to unregister it."""

        def unregister_queue() -> None:
            self._queues.remove(queue)

        self._queues.append(queue)
        return unregister_queue

    def dispatch(self, event: EventT) -> None:
        """Deliver event to all registered sinks."""
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:  # pylint: disable=broad-except
                self._logger.exception("Error in %s callback %s", self._name, callback)

        for queue in list(self._queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self._logger.debug("%s queue is full, dropping %s", self._name, event)
