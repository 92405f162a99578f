"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from notification_feed.domain.entities import NotificationPriority, NotificationType


class NotificationCreate(BaseModel):
    """Payload used to send a notification to a user."""

    user_id: str | None = Field(
        default=None,
        min_length=1,
        description="Destinatario; debe coincidir con el usuario autenticado",
    )
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    link: str | None = Field(default=None, max_length=500)
    expires_at: datetime | None = None
    priority: NotificationPriority | None = None


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[str] = Field(..., min_length=1, description="Identificadores de notificaciones")

    def unique_ids(self) -> list[str]:
        """Return the list of identifiers without duplicates preserving order."""

        unique: list[str] = []
        seen: set[str] = set()
        for notification_id in self.ids:
            if notification_id in seen:
                continue
            seen.add(notification_id)
            unique.append(notification_id)
        return unique


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool
    created_at: datetime | None = None
    link: str | None = None
    expires_at: datetime | None = None
    priority: NotificationPriority | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationRead]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class NotificationDeleteAllResponse(BaseModel):
    deleted: int


__all__ = [
    "MarkAllReadResponse",
    "NotificationCreate",
    "NotificationDeleteAllResponse",
    "NotificationListResponse",
    "NotificationMarkReadRequest",
    "NotificationRead",
]
