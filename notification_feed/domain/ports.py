"""Interfaces the notification core consumes from the remote store."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

from .entities import NotificationDelta, NotificationRecord


class RemoteNotificationFeed(Protocol):
    """Per-user notification collection exposed by the remote store."""

    async def fetch_recent(
        self, user_id: str, *, limit: int
    ) -> Sequence[NotificationRecord]:
        """Return at most ``limit`` records ordered by ``created_at`` descending."""

    def listen(
        self, user_id: str, *, limit: int
    ) -> AsyncIterator[NotificationDelta]:
        """Stream deltas for the same query until the iterator is closed."""

    async def update_record(
        self, notification_id: str, fields: Mapping[str, Any]
    ) -> None:
        """Apply a partial update to a single record."""

    async def delete_record(self, notification_id: str) -> None:
        """Remove a single record."""


class CursorStore(Protocol):
    """Key-value store holding the freshness cursor of every user."""

    async def read(self, user_id: str) -> datetime | None:
        """Return the persisted ``last_checked`` timestamp of ``user_id``."""

    async def write(self, user_id: str, last_checked: datetime) -> None:
        """Persist ``last_checked`` for ``user_id``."""


__all__ = ["CursorStore", "RemoteNotificationFeed"]
