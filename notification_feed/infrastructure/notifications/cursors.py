"""Freshness cursor stores keyed by user id."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from anyio import to_thread
from sqlalchemy.orm import Session

from notification_feed.infrastructure.repositories import NotificationCursorRepository


class InMemoryCursorStore:
    """Process-scoped cursor store; cursors are lost on restart."""

    def __init__(self) -> None:
        self._cursors: dict[str, datetime] = {}

    async def read(self, user_id: str) -> datetime | None:
        return self._cursors.get(user_id)

    async def write(self, user_id: str, last_checked: datetime) -> None:
        self._cursors[user_id] = last_checked


class SqlCursorStore:
    """Cursor store persisted in the ``notification_cursor`` table."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory

    async def read(self, user_id: str) -> datetime | None:
        return await to_thread.run_sync(self._read, user_id)

    async def write(self, user_id: str, last_checked: datetime) -> None:
        await to_thread.run_sync(self._write, user_id, last_checked)

    def _session(self) -> Session:
        if self._session_factory is not None:
            return self._session_factory()
        from notification_feed.infrastructure import database

        return database.SessionLocal()

    def _read(self, user_id: str) -> datetime | None:
        session = self._session()
        try:
            return NotificationCursorRepository(session).get(user_id)
        finally:
            session.close()

    def _write(self, user_id: str, last_checked: datetime) -> None:
        session = self._session()
        try:
            NotificationCursorRepository(session).set(user_id, last_checked)
        finally:
            session.close()


__all__ = ["InMemoryCursorStore", "SqlCursorStore"]
