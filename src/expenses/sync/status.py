"""
Broadcast channel for sync status events.

Any number of subscribers; each only sees events published after it
subscribed (no replay). Publishing never blocks: each subscription owns an
unbounded asyncio.Queue.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from expenses.models.sync import SyncEvent

logger = logging.getLogger(__name__)

_CLOSED = object()


class StatusSubscription:
    """Async iterator over events published after subscribe()."""

    def __init__(self, broadcaster: "SyncStatusBroadcaster"):
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _deliver(self, item) -> None:
        self._queue.put_nowait(item)

    async def get(self) -> SyncEvent:
        """
        Wait for the next event.

        Raises:
            StopAsyncIteration: once the subscription or broadcaster is closed.
        """
        item = await self._queue.get()
        if item is _CLOSED:
            self.closed = True
            raise StopAsyncIteration
        return item

    def get_nowait(self) -> Optional[SyncEvent]:
        """Return a pending event, or None if nothing is queued."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if item is _CLOSED:
            self.closed = True
            return None
        return item

    def drain(self) -> List[SyncEvent]:
        """All events queued so far, oldest first."""
        events = []
        while True:
            event = self.get_nowait()
            if event is None:
                return events
            events.append(event)

    def close(self) -> None:
        self._broadcaster._remove(self)
        self._deliver(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> SyncEvent:
        return await self.get()


class SyncStatusBroadcaster:
    """Fan-out of SyncEvent objects to queue subscribers and callbacks."""

    def __init__(self):
        self._subscriptions: List[StatusSubscription] = []
        self._listeners: List[Callable[[SyncEvent], None]] = []
        self.latest: Optional[SyncEvent] = None

    def subscribe(self) -> StatusSubscription:
        sub = StatusSubscription(self)
        self._subscriptions.append(sub)
        return sub

    def add_listener(self, callback: Callable[[SyncEvent], None]) -> None:
        """Register a synchronous callback invoked for every published event."""
        self._listeners.append(callback)

    def publish(self, event: SyncEvent) -> None:
        self.latest = event
        logger.debug("Sync status %s (%s)", event.status.value, event.operation)
        for sub in list(self._subscriptions):
            sub._deliver(event)
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                logger.exception("Sync status listener failed")

    def close(self) -> None:
        """End every subscription; later publishes reach listeners only."""
        for sub in list(self._subscriptions):
            sub.close()

    def _remove(self, sub: StatusSubscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
