"""Optimistic read-state and removal mutations reconciled with the remote store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from notification_feed.domain.entities import NotificationDelta
from notification_feed.domain.ports import RemoteNotificationFeed

from .store import NotificationStore

logger = logging.getLogger(__name__)

READ_FIELDS = {"read": True}


@dataclass
class ReadStateResult:
    """Outcome of a batch mutation.

    ``applied`` lists the identifiers changed locally; ``failed`` the subset
    whose remote write was rejected. Local state is kept either way.
    """

    applied: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def confirmed(self) -> list[str]:
        failed = set(self.failed)
        return [notification_id for notification_id in self.applied if notification_id not in failed]


class ReadStateCoordinator:
    """Apply local read/removal intent first, then acknowledge it remotely.

    Remote failures are logged and never raised: local intent stays
    authoritative for the session and a later live delta corrects any record
    whose write did not land.
    """

    def __init__(self, store: NotificationStore, feed: RemoteNotificationFeed) -> None:
        self._store = store
        self._feed = feed

    async def mark_as_read(self, notification_id: str) -> bool:
        """Mark a single notification as read.

        Returns ``False`` when the remote write failed. Records already read
        in the cache are a no-op.
        """

        cached = self._store.get(notification_id)
        if cached is not None and cached.read:
            return True
        self._store.mark_read([notification_id])
        return await self._acknowledge(
            notification_id,
            lambda: self._feed.update_record(notification_id, READ_FIELDS),
            action="mark as read",
        )

    async def mark_all_as_read(self) -> ReadStateResult:
        """Mark every currently unread cached notification as read."""

        unread = self._store.unread_ids()
        if not unread:
            return ReadStateResult()
        applied = self._store.mark_read(unread)
        failed = await self._acknowledge_many(
            applied,
            lambda notification_id: self._feed.update_record(notification_id, READ_FIELDS),
            action="mark as read",
        )
        if failed:
            logger.warning(
                "%d of %d read acknowledgements failed for user %s",
                len(failed),
                len(applied),
                self._store.user_id,
            )
        return ReadStateResult(applied=applied, failed=failed)

    async def delete(self, notification_id: str) -> bool:
        """Remove a notification locally and from the remote store."""

        cached = self._store.get(notification_id)
        if cached is not None:
            self._store.apply_delta(NotificationDelta.removed(cached))
        return await self._acknowledge(
            notification_id,
            lambda: self._feed.delete_record(notification_id),
            action="delete",
        )

    async def delete_all(self) -> ReadStateResult:
        """Remove every cached notification."""

        records = self._store.get_all()
        if not records:
            return ReadStateResult()
        applied: list[str] = []
        for record in records:
            if self._store.apply_delta(NotificationDelta.removed(record)):
                applied.append(record.id)
        failed = await self._acknowledge_many(
            applied,
            lambda notification_id: self._feed.delete_record(notification_id),
            action="delete",
        )
        return ReadStateResult(applied=applied, failed=failed)

    async def _acknowledge(
        self,
        notification_id: str,
        write: Callable[[], Awaitable[None]],
        *,
        action: str,
    ) -> bool:
        try:
            await write()
        except Exception as exc:
            logger.warning(
                "Could not %s notification %s remotely: %s", action, notification_id, exc
            )
            return False
        return True

    async def _acknowledge_many(
        self,
        notification_ids: Sequence[str],
        write: Callable[[str], Awaitable[None]],
        *,
        action: str,
    ) -> list[str]:
        results = await asyncio.gather(
            *(
                self._acknowledge(notification_id, lambda nid=notification_id: write(nid), action=action)
                for notification_id in notification_ids
            )
        )
        return [
            notification_id
            for notification_id, succeeded in zip(notification_ids, results)
            if not succeeded
        ]


__all__ = ["ReadStateCoordinator", "ReadStateResult"]
