"""JSON payloads pushed to websocket clients."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from notification_feed.domain.entities import NotificationRecord


def serialize_notification(notification: NotificationRecord) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type.value,
        "read": notification.read,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "link": notification.link,
        "expires_at": notification.expires_at.isoformat()
        if notification.expires_at
        else None,
        "priority": notification.priority.value if notification.priority else None,
    }


def serialize_state(
    notifications: Iterable[NotificationRecord], unread_count: int
) -> dict[str, Any]:
    """Return the list/badge payload for a notification set."""

    return {
        "notifications": [serialize_notification(n) for n in notifications],
        "unread_count": unread_count,
    }


__all__ = ["serialize_notification", "serialize_state"]
