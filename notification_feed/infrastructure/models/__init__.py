"""ORM models used by the application infrastructure."""

from .cursor import NotificationCursorModel
from .notification import NotificationModel

__all__ = ["NotificationCursorModel", "NotificationModel"]
