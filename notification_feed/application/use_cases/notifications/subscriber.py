"""Live subscription to a user's notification change feed."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from datetime import datetime

from notification_feed.domain.entities import (
    FreshnessCursor,
    NotificationDelta,
    NotificationRecord,
)
from notification_feed.domain.ports import CursorStore, RemoteNotificationFeed
from notification_feed.utils import now_in_app_timezone

from .delivery_filter import DeliveryFilter
from .store import NotificationStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

AlertHandler = Callable[[NotificationRecord], None]
ErrorSink = Callable[[Exception], None]


class InitialFetchError(RuntimeError):
    """Raised when the seed fetch of a subscription fails."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Could not load notifications for user {user_id}")
        self.user_id = user_id


def _log_stream_error(exc: Exception) -> None:
    logger.warning("Notification stream stopped: %s", exc)


class Subscription:
    """Handle over a running change-feed subscription.

    Cancelling is idempotent and also safe after the stream failed. Once the
    subscription is inactive, deliveries still in flight are ignored.
    """

    def __init__(self, user_id: str, cursor: FreshnessCursor) -> None:
        self.user_id = user_id
        self.cursor = cursor
        self._active = True
        self._error: Exception | None = None
        self._task: asyncio.Task[None] | None = None
        self._alerted: set[str] = set()

    @property
    def active(self) -> bool:
        return self._active

    @property
    def error(self) -> Exception | None:
        return self._error

    def cancel(self) -> None:
        """Release the stream. Calling it again is a no-op."""

        if self._active:
            logger.debug("Cancelling notification subscription for user %s", self.user_id)
        self._active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def closed(self) -> None:
        """Wait until the underlying stream task has finished."""

        if self._task is None:
            return
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    def _attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def _deactivate(self) -> None:
        self._active = False

    def _fail(self, exc: Exception) -> bool:
        """Mark the subscription as failed; ``True`` only for the first report."""

        if not self._active:
            return False
        self._active = False
        self._error = exc
        return True

    def _claim_alert(self, notification_id: str) -> bool:
        if notification_id in self._alerted:
            return False
        self._alerted.add(notification_id)
        return True


class ChangeFeedSubscriber:
    """Seed a :class:`NotificationStore` and keep it in sync with the feed.

    Every delivered delta is applied to the store and then evaluated by the
    delivery filter; ``on_alert`` is called at most once per record for the
    lifetime of a subscription.
    """

    def __init__(
        self,
        feed: RemoteNotificationFeed,
        store: NotificationStore,
        delivery_filter: DeliveryFilter,
        *,
        cursors: CursorStore,
        on_alert: AlertHandler | None = None,
        on_error: ErrorSink | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._feed = feed
        self._store = store
        self._filter = delivery_filter
        self._cursors = cursors
        self._on_alert = on_alert
        self._on_error = on_error or _log_stream_error
        self._page_size = page_size
        self._clock = clock

    async def subscribe(self, user_id: str) -> Subscription:
        """Seed the store for ``user_id`` and start streaming live deltas.

        Raises :class:`InitialFetchError` when the initial fetch fails; no
        stream is opened in that case.
        """

        started_at = self._clock()
        last_checked = await self._read_cursor(user_id)

        try:
            records = await self._feed.fetch_recent(user_id, limit=self._page_size)
        except Exception as exc:
            logger.warning("Initial notification fetch failed for user %s: %s", user_id, exc)
            raise InitialFetchError(user_id) from exc

        seeded = list(records)[: self._page_size]
        # The cache holds exactly the fetched page after seeding.
        self._store.clear()
        for record in seeded:
            self._store.apply_delta(NotificationDelta.added(record))
        self._store.prune_expired(started_at)

        await self._write_cursor(user_id, started_at)

        cursor = FreshnessCursor(
            user_id=user_id,
            last_checked=last_checked,
            seed_ids=frozenset(record.id for record in seeded),
        )
        subscription = Subscription(user_id, cursor)
        stream = self._feed.listen(user_id, limit=self._page_size)
        task = asyncio.create_task(
            self._pump(subscription, stream), name=f"notification-feed:{user_id}"
        )
        subscription._attach(task)
        logger.info(
            "Notification subscription opened for user %s with %d cached records",
            user_id,
            len(seeded),
        )
        return subscription

    async def _pump(
        self, subscription: Subscription, stream: AsyncIterator[NotificationDelta]
    ) -> None:
        try:
            async with aclosing(stream):
                async for delta in stream:
                    if not subscription.active:
                        break
                    self._dispatch(subscription, delta)
            if subscription.active:
                logger.info("Notification stream ended for user %s", subscription.user_id)
                subscription._deactivate()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if subscription._fail(exc):
                self._report_error(exc)

    def _dispatch(self, subscription: Subscription, delta: NotificationDelta) -> None:
        now = self._clock()
        self._store.apply_delta(delta)
        self._store.prune_expired(now)

        record = delta.record
        if record.is_expired(now):
            return
        if not self._filter.should_alert(delta, subscription.cursor, now=now):
            return
        if not subscription._claim_alert(record.id):
            return
        if self._on_alert is None:
            return
        try:
            self._on_alert(record)
        except Exception:
            logger.exception("Alert handler failed for notification %s", record.id)

    def _report_error(self, exc: Exception) -> None:
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("Notification error sink failed")

    async def _read_cursor(self, user_id: str) -> datetime | None:
        try:
            return await self._cursors.read(user_id)
        except Exception as exc:
            logger.warning("Could not read notification cursor for user %s: %s", user_id, exc)
            return None

    async def _write_cursor(self, user_id: str, last_checked: datetime) -> None:
        try:
            await self._cursors.write(user_id, last_checked)
        except Exception as exc:
            logger.warning("Could not advance notification cursor for user %s: %s", user_id, exc)


__all__ = [
    "AlertHandler",
    "ChangeFeedSubscriber",
    "DEFAULT_PAGE_SIZE",
    "ErrorSink",
    "InitialFetchError",
    "Subscription",
]
