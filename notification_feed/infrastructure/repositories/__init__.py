"""Repository implementations for infrastructure layer."""

from .cursor_repository import NotificationCursorRepository
from .notification_repository import NotificationNotFoundError, NotificationRepository

__all__ = [
    "NotificationCursorRepository",
    "NotificationNotFoundError",
    "NotificationRepository",
]
