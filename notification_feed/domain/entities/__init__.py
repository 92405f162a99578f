"""Domain entities exposed by the application."""

from .cursor import FreshnessCursor
from .delta import ChangeType, NotificationDelta
from .notification import NotificationPriority, NotificationRecord, NotificationType

__all__ = [
    "ChangeType",
    "FreshnessCursor",
    "NotificationDelta",
    "NotificationPriority",
    "NotificationRecord",
    "NotificationType",
]
