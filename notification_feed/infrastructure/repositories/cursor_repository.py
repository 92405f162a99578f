"""Persistence helpers for per-user freshness cursors."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from notification_feed.infrastructure.models import NotificationCursorModel
from notification_feed.utils import ensure_app_naive_datetime, ensure_app_timezone


class NotificationCursorRepository:
    """Read and upsert the ``last_checked`` timestamp of a user."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> datetime | None:
        model = self.session.get(NotificationCursorModel, user_id)
        if model is None:
            return None
        return ensure_app_timezone(model.last_checked)

    def set(self, user_id: str, last_checked: datetime) -> None:
        model = self.session.get(NotificationCursorModel, user_id)
        if model is None:
            model = NotificationCursorModel(user_id=user_id)
        model.last_checked = ensure_app_naive_datetime(last_checked)
        self.session.add(model)
        self.session.commit()


__all__ = ["NotificationCursorRepository"]
