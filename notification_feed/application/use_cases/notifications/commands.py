"""Remote-side notification commands issued on behalf of a user."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from notification_feed.domain.entities import (
    NotificationPriority,
    NotificationRecord,
    NotificationType,
)
from notification_feed.infrastructure.notifications import SqlNotificationFeed
from notification_feed.infrastructure.repositories import NotificationNotFoundError
from notification_feed.utils import ensure_app_timezone, now_in_app_timezone


async def create_notification(
    feed: SqlNotificationFeed,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.INFO,
    link: str | None = None,
    expires_at: datetime | None = None,
    priority: NotificationPriority | None = None,
) -> NotificationRecord:
    """Persist a notification for ``user_id`` and publish it to live feeds."""

    title = title.strip()
    message = message.strip()
    if not title:
        raise ValueError("El título de la notificación es obligatorio")
    if not message:
        raise ValueError("El mensaje de la notificación es obligatorio")

    created_at = now_in_app_timezone()
    expires_at = ensure_app_timezone(expires_at)
    if expires_at is not None and expires_at <= created_at:
        raise ValueError("La fecha de expiración debe ser futura")

    notification = NotificationRecord(
        id="",
        user_id=user_id,
        title=title,
        message=message,
        type=notification_type,
        read=False,
        created_at=created_at,
        link=link or None,
        expires_at=expires_at,
        priority=priority,
    )
    return await feed.create_record(notification)


async def _get_owned(
    feed: SqlNotificationFeed, notification_id: str, *, user_id: str
) -> NotificationRecord:
    notification = await feed.get_record(notification_id)
    if notification is None or notification.user_id != user_id:
        raise NotificationNotFoundError(notification_id)
    return notification


async def mark_notifications_read(
    feed: SqlNotificationFeed, notification_ids: Iterable[str], *, user_id: str
) -> list[str]:
    """Mark the given notifications of ``user_id`` as read.

    All ids are validated before any write happens. Returns the ids that were
    unread.
    """

    notifications = [
        await _get_owned(feed, notification_id, user_id=user_id)
        for notification_id in notification_ids
    ]
    updated: list[str] = []
    for notification in notifications:
        if notification.read:
            continue
        await feed.update_record(notification.id, {"read": True})
        updated.append(notification.id)
    return updated


async def mark_all_notifications_read(feed: SqlNotificationFeed, *, user_id: str) -> int:
    """Mark every unread notification of ``user_id`` as read."""

    unread_ids = await feed.list_ids_for_user(user_id, unread_only=True)
    for notification_id in unread_ids:
        await feed.update_record(notification_id, {"read": True})
    return len(unread_ids)


async def delete_notification(
    feed: SqlNotificationFeed, notification_id: str, *, user_id: str
) -> None:
    """Delete a notification owned by ``user_id``."""

    await _get_owned(feed, notification_id, user_id=user_id)
    await feed.delete_record(notification_id)


async def delete_all_notifications(feed: SqlNotificationFeed, *, user_id: str) -> int:
    """Delete every notification of ``user_id``."""

    notification_ids = await feed.list_ids_for_user(user_id)
    for notification_id in notification_ids:
        await feed.delete_record(notification_id)
    return len(notification_ids)


__all__ = [
    "create_notification",
    "delete_all_notifications",
    "delete_notification",
    "mark_all_notifications_read",
    "mark_notifications_read",
]
