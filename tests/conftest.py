"""Shared fixtures for the notification feed test-suite."""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

TEST_DB_PATH = Path(__file__).parent / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ.pop("ALERT_POLICY", None)

from notification_feed.domain.entities import (  # noqa: E402
    NotificationDelta,
    NotificationRecord,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeNotificationFeed:
    """In-memory stand-in for the remote change feed.

    ``listen`` replays the current page as ``added`` deltas before streaming
    what the test pushes, like a real transport does on attach.
    """

    def __init__(self, records: list[NotificationRecord] | None = None) -> None:
        self.records: dict[str, NotificationRecord] = {
            record.id: record for record in records or []
        }
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.deleted: list[str] = []
        self.failing_ids: set[str] = set()
        self.fetch_error: Exception | None = None
        self.replay_on_attach = True
        self.closed_streams = 0
        self._queues: list[asyncio.Queue[Any]] = []

    @property
    def listener_count(self) -> int:
        return len(self._queues)

    async def fetch_recent(self, user_id: str, *, limit: int) -> list[NotificationRecord]:
        if self.fetch_error is not None:
            raise self.fetch_error
        owned = [record for record in self.records.values() if record.user_id == user_id]
        owned.sort(key=lambda record: record.created_at or NOW, reverse=True)
        return owned[:limit]

    async def listen(self, user_id: str, *, limit: int):
        queue: asyncio.Queue[Any] = asyncio.Queue()
        self._queues.append(queue)
        try:
            if self.replay_on_attach:
                for record in await self.fetch_recent(user_id, limit=limit):
                    yield NotificationDelta.added(record)
            while True:
                item = await queue.get()
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self._queues.remove(queue)
            self.closed_streams += 1

    def push(self, delta: NotificationDelta) -> None:
        for queue in list(self._queues):
            queue.put_nowait(delta)

    def fail_stream(self, exc: Exception) -> None:
        for queue in list(self._queues):
            queue.put_nowait(exc)

    async def update_record(self, notification_id: str, fields: Mapping[str, Any]) -> None:
        self.updates.append((notification_id, dict(fields)))
        if notification_id in self.failing_ids:
            raise RuntimeError(f"write rejected for {notification_id}")

    async def delete_record(self, notification_id: str) -> None:
        self.deleted.append(notification_id)
        if notification_id in self.failing_ids:
            raise RuntimeError(f"delete rejected for {notification_id}")
        self.records.pop(notification_id, None)


def make_record(
    notification_id: str,
    *,
    user_id: str = "user-1",
    minutes_ago: float | None = 1,
    read: bool = False,
    **overrides: Any,
) -> NotificationRecord:
    created_at = None if minutes_ago is None else NOW - timedelta(minutes=minutes_ago)
    values = {
        "id": notification_id,
        "user_id": user_id,
        "title": f"Title {notification_id}",
        "message": f"Message {notification_id}",
        "read": read,
        "created_at": created_at,
    }
    values.update(overrides)
    return NotificationRecord(**values)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def settle():
    """Return a coroutine that yields to the loop until ``condition`` holds.

    Without a condition it only lets pending callbacks run.
    """

    async def _settle(condition=None, *, timeout: float = 2.0) -> None:
        if condition is None:
            for _ in range(10):
                await asyncio.sleep(0)
            return
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not condition() and loop.time() < deadline:
            await asyncio.sleep(0.005)

    return _settle


@pytest.fixture
def feed_factory():
    return FakeNotificationFeed
