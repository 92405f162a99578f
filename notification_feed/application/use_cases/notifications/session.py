"""Per-session bundle of notification cache, subscription and read coordinator."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from notification_feed.domain.ports import CursorStore, RemoteNotificationFeed
from notification_feed.utils import now_in_app_timezone

from .delivery_filter import CursorDeliveryFilter, DeliveryFilter
from .read_state import ReadStateCoordinator
from .store import NotificationStore
from .subscriber import (
    DEFAULT_PAGE_SIZE,
    AlertHandler,
    ChangeFeedSubscriber,
    ErrorSink,
    Subscription,
)

logger = logging.getLogger(__name__)


class NotificationSession:
    """Notification state of one authenticated session.

    A session is created on sign-in, started once and closed on sign-out.
    Two sessions of the same user never share in-process state; they only
    converge through the remote store.
    """

    def __init__(
        self,
        user_id: str,
        feed: RemoteNotificationFeed,
        cursors: CursorStore,
        *,
        delivery_filter: DeliveryFilter | None = None,
        on_alert: AlertHandler | None = None,
        on_error: ErrorSink | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self.user_id = user_id
        self.store = NotificationStore(user_id)
        self.read_state = ReadStateCoordinator(self.store, feed)
        self._subscriber = ChangeFeedSubscriber(
            feed,
            self.store,
            delivery_filter or CursorDeliveryFilter(),
            cursors=cursors,
            on_alert=on_alert,
            on_error=on_error,
            page_size=page_size,
            clock=clock,
        )
        self._subscription: Subscription | None = None
        self._closed = False

    @property
    def subscription(self) -> Subscription | None:
        return self._subscription

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def start(self) -> Subscription:
        """Open the change-feed subscription of this session."""

        if self._closed:
            raise RuntimeError("Notification session already closed")
        if self._subscription is not None and self._subscription.active:
            return self._subscription
        self._subscription = await self._subscriber.subscribe(self.user_id)
        return self._subscription

    def close(self) -> None:
        """Cancel the subscription and drop the cached notifications."""

        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.cancel()
        self.store.clear()
        logger.debug("Notification session closed for user %s", self.user_id)

    async def __aenter__(self) -> "NotificationSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
        if self._subscription is not None:
            await self._subscription.closed()


__all__ = ["NotificationSession"]
