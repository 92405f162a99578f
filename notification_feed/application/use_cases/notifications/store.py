"""In-memory notification cache owned by a single authenticated session."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime

from notification_feed.domain.entities import (
    ChangeType,
    NotificationDelta,
    NotificationRecord,
)

logger = logging.getLogger(__name__)

StoreWatcher = Callable[["NotificationStore"], None]


def _display_key(record: NotificationRecord) -> tuple[int, float, str]:
    # Records still waiting for a server timestamp are the newest ones.
    if record.created_at is None:
        return (0, 0.0, record.id)
    return (1, -record.created_at.timestamp(), record.id)


class NotificationStore:
    """Cache of the current notification set and its derived unread count.

    The store is the only owner of the in-memory set. Subscribers and the read
    coordinator propose mutations through :meth:`apply_delta` and
    :meth:`mark_read`; every mutation recomputes the unread count from the
    set instead of patching a counter.
    """

    def __init__(self, user_id: str | None = None) -> None:
        self.user_id = user_id
        self._records: dict[str, NotificationRecord] = {}
        self._unread_count = 0
        self._watchers: list[StoreWatcher] = []

    def apply_delta(self, delta: NotificationDelta) -> bool:
        """Apply ``delta`` to the cache and return whether anything changed."""

        record = delta.record
        existing = self._records.get(record.id)

        if delta.change_type is ChangeType.ADDED:
            if existing is not None:
                return False
            self._records[record.id] = record
        elif delta.change_type is ChangeType.MODIFIED:
            if existing is None:
                return False
            merged = replace(
                record,
                created_at=existing.created_at,
                read=existing.read or record.read,
            )
            if merged == existing:
                return False
            self._records[record.id] = merged
        elif delta.change_type is ChangeType.REMOVED:
            if existing is None:
                return False
            del self._records[record.id]
        else:  # pragma: no cover - closed enum
            raise ValueError(f"Unsupported change type: {delta.change_type!r}")

        self._commit()
        return True

    def mark_read(self, notification_ids: Iterable[str]) -> list[str]:
        """Flip ``read`` for the cached ids in one mutation.

        Returns the identifiers whose state actually changed.
        """

        changed: list[str] = []
        for notification_id in notification_ids:
            record = self._records.get(notification_id)
            if record is None or record.read:
                continue
            self._records[notification_id] = replace(record, read=True)
            changed.append(notification_id)
        if changed:
            self._commit()
        return changed

    def prune_expired(self, now: datetime) -> list[str]:
        """Drop records whose ``expires_at`` is in the past."""

        expired = [
            notification_id
            for notification_id, record in self._records.items()
            if record.is_expired(now)
        ]
        for notification_id in expired:
            del self._records[notification_id]
        if expired:
            logger.debug("Pruned %d expired notifications", len(expired))
            self._commit()
        return expired

    def clear(self) -> None:
        if not self._records:
            return
        self._records.clear()
        self._commit()

    def get(self, notification_id: str) -> NotificationRecord | None:
        return self._records.get(notification_id)

    def get_all(self) -> list[NotificationRecord]:
        """Return the cached records ordered by ``created_at`` descending."""

        return sorted(self._records.values(), key=_display_key)

    def get_unread_count(self) -> int:
        return self._unread_count

    def unread_ids(self) -> list[str]:
        return [record.id for record in self.get_all() if not record.read]

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def watch(self, watcher: StoreWatcher) -> Callable[[], None]:
        """Register ``watcher`` to run after every mutation.

        Returns a callable that removes the watcher; calling it twice is a
        no-op.
        """

        self._watchers.append(watcher)

        def _unwatch() -> None:
            try:
                self._watchers.remove(watcher)
            except ValueError:
                pass

        return _unwatch

    def _commit(self) -> None:
        self._unread_count = sum(
            1 for record in self._records.values() if not record.read
        )
        for watcher in list(self._watchers):
            try:
                watcher(self)
            except Exception:
                logger.exception("Notification store watcher failed")


__all__ = ["NotificationStore", "StoreWatcher"]
