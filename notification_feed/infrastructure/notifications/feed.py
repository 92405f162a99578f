"""Remote notification feed backed by the SQL database and the broker."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from functools import partial
from typing import Any, TypeVar

from anyio import to_thread
from sqlalchemy.orm import Session

from notification_feed.domain.entities import NotificationDelta, NotificationRecord
from notification_feed.infrastructure.repositories import NotificationRepository

from .broker import ChangeFeedBroker, change_feed_broker

logger = logging.getLogger(__name__)

T = TypeVar("T")

SessionFactory = Callable[[], Session]


def _default_session_factory() -> Session:
    from notification_feed.infrastructure import database

    return database.SessionLocal()


class SqlNotificationFeed:
    """Expose the notification table as a per-user change feed.

    Repository calls are blocking and run in worker threads. Every successful
    write publishes the matching delta to the broker so live listeners of the
    record's owner observe it.
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        broker: ChangeFeedBroker = change_feed_broker,
    ) -> None:
        self._session_factory = session_factory or _default_session_factory
        self._broker = broker

    async def fetch_recent(
        self, user_id: str, *, limit: int
    ) -> Sequence[NotificationRecord]:
        return await self._run(
            lambda repository: repository.list_for_user(user_id, limit=limit)
        )

    def listen(
        self, user_id: str, *, limit: int
    ) -> AsyncIterator[NotificationDelta]:
        return self._broker.listen(
            user_id, partial(self.fetch_recent, user_id, limit=limit)
        )

    async def get_record(self, notification_id: str) -> NotificationRecord | None:
        return await self._run(lambda repository: repository.get(notification_id))

    async def count_unread(self, user_id: str) -> int:
        return await self._run(lambda repository: repository.count_unread(user_id))

    async def list_ids_for_user(
        self, user_id: str, *, unread_only: bool = False
    ) -> list[str]:
        return await self._run(
            lambda repository: repository.list_ids_for_user(
                user_id, unread_only=unread_only
            )
        )

    async def create_record(self, record: NotificationRecord) -> NotificationRecord:
        saved = await self._run(lambda repository: repository.create(record))
        self._broker.publish(saved.user_id, NotificationDelta.added(saved))
        logger.info("Notification %s created for user %s", saved.id, saved.user_id)
        return saved

    async def update_record(
        self, notification_id: str, fields: Mapping[str, Any]
    ) -> None:
        updated = await self._run(
            lambda repository: repository.update_fields(notification_id, fields)
        )
        self._broker.publish(updated.user_id, NotificationDelta.modified(updated))

    async def delete_record(self, notification_id: str) -> None:
        deleted = await self._run(lambda repository: repository.delete(notification_id))
        self._broker.publish(deleted.user_id, NotificationDelta.removed(deleted))

    async def _run(self, operation: Callable[[NotificationRepository], T]) -> T:
        def _call() -> T:
            session = self._session_factory()
            try:
                return operation(NotificationRepository(session))
            finally:
                session.close()

        return await to_thread.run_sync(_call)


__all__ = ["SqlNotificationFeed"]
