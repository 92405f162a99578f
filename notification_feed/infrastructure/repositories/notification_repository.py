"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from notification_feed.domain.entities import (
    NotificationPriority,
    NotificationRecord,
    NotificationType,
)
from notification_feed.infrastructure.models import NotificationModel
from notification_feed.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

UPDATABLE_FIELDS = frozenset(
    {"title", "message", "type", "read", "link", "expires_at", "priority"}
)


class NotificationNotFoundError(LookupError):
    """Raised when a notification does not exist or belongs to another user."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(f"Notification with id {notification_id} not found")
        self.notification_id = notification_id


class NotificationRepository:
    """Provide CRUD operations for :class:`NotificationRecord` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_user(
        self,
        user_id: str,
        *,
        limit: int | None = 20,
    ) -> Sequence[NotificationRecord]:
        query = self.session.query(NotificationModel)
        query = query.filter(NotificationModel.user_id == user_id)
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_ids_for_user(self, user_id: str, *, unread_only: bool = False) -> list[str]:
        query = self.session.query(NotificationModel.id).filter(
            NotificationModel.user_id == user_id
        )
        if unread_only:
            query = query.filter(NotificationModel.read.is_(False))
        return [row.id for row in query.all()]

    def count_unread(self, user_id: str) -> int:
        return (
            self.session.query(func.count(NotificationModel.id))
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .scalar()
            or 0
        )

    def get(self, notification_id: str) -> NotificationRecord | None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return None
        return self._to_entity(model)

    def create(self, notification: NotificationRecord) -> NotificationRecord:
        model = NotificationModel()
        if notification.id:
            model.id = notification.id
        model.user_id = notification.user_id
        model.title = notification.title
        model.message = notification.message
        model.type = NotificationType(notification.type).value
        model.read = notification.read
        model.created_at = ensure_app_naive_datetime(
            notification.created_at or now_in_app_timezone()
        )
        model.link = notification.link
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)
        model.priority = (
            NotificationPriority(notification.priority).value
            if notification.priority
            else None
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update_fields(
        self, notification_id: str, fields: Mapping[str, Any]
    ) -> NotificationRecord:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            raise NotificationNotFoundError(notification_id)
        for name, value in fields.items():
            setattr(model, name, self._to_column_value(name, value))
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, notification_id: str) -> NotificationRecord:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            raise NotificationNotFoundError(notification_id)
        record = self._to_entity(model)
        self.session.delete(model)
        self.session.commit()
        return record

    @staticmethod
    def _to_column_value(name: str, value: Any) -> Any:
        if name == "type":
            return NotificationType(value).value
        if name == "priority":
            return NotificationPriority(value).value if value else None
        if name == "expires_at":
            return ensure_app_naive_datetime(value)
        if name == "read":
            return bool(value)
        return value

    @staticmethod
    def _to_entity(model: NotificationModel) -> NotificationRecord:
        return NotificationRecord(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            message=model.message,
            type=NotificationType(model.type),
            read=bool(model.read),
            created_at=ensure_app_timezone(model.created_at),
            link=model.link,
            expires_at=ensure_app_timezone(model.expires_at),
            priority=NotificationPriority(model.priority) if model.priority else None,
        )


__all__ = ["NotificationNotFoundError", "NotificationRepository"]
