"""In-process fan-out of notification deltas to live listeners."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import DefaultDict, Set

from notification_feed.domain.entities import NotificationDelta, NotificationRecord

logger = logging.getLogger(__name__)


class _Listener:
    """Queue bound to the event loop of the task consuming it."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop
        self.queue: asyncio.Queue[NotificationDelta] = asyncio.Queue()

    def deliver(self, delta: NotificationDelta) -> None:
        self.loop.call_soon_threadsafe(self.queue.put_nowait, delta)


class ChangeFeedBroker:
    """Manage live delta listeners grouped by user."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, Set[_Listener]] = defaultdict(set)

    def listener_count(self, user_id: str) -> int:
        return len(self._listeners.get(user_id, ()))

    def publish(self, user_id: str, delta: NotificationDelta) -> None:
        """Deliver ``delta`` to every listener of ``user_id``.

        Safe to call from any thread.
        """

        for listener in list(self._listeners.get(user_id, set())):
            try:
                listener.deliver(delta)
            except RuntimeError:
                # The listener's loop is closed.
                self._disconnect(user_id, listener)

    async def listen(
        self,
        user_id: str,
        load_snapshot: Callable[[], Awaitable[Sequence[NotificationRecord]]] | None = None,
    ) -> AsyncIterator[NotificationDelta]:
        """Yield the current snapshot as ``added`` deltas, then live deltas.

        The listener is registered before ``load_snapshot`` runs so no delta
        published in between is lost; a record may then arrive twice.
        """

        listener = _Listener(asyncio.get_running_loop())
        self._listeners[user_id].add(listener)
        logger.debug("Change-feed listener attached for user %s", user_id)
        try:
            snapshot = await load_snapshot() if load_snapshot is not None else ()
            for record in snapshot:
                yield NotificationDelta.added(record)
            while True:
                yield await listener.queue.get()
        finally:
            self._disconnect(user_id, listener)
            logger.debug("Change-feed listener detached for user %s", user_id)

    def _disconnect(self, user_id: str, listener: _Listener) -> None:
        listeners = self._listeners.get(user_id)
        if listeners is None:
            return
        listeners.discard(listener)
        if not listeners:
            self._listeners.pop(user_id, None)


change_feed_broker = ChangeFeedBroker()


__all__ = ["ChangeFeedBroker", "change_feed_broker"]
