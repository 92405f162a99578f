"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    """Closed set of notification categories."""

    ANNOUNCEMENT = "announcement"
    CTF = "ctf"
    WARGAME = "wargame"
    COMMUNITY = "community"
    VERIFICATION = "verification"
    SYSTEM = "system"
    ACHIEVEMENT = "achievement"
    LEVEL_UP = "level_up"
    TIER_UP = "tier_up"
    ADMIN_ACTION = "admin_action"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class NotificationRecord:
    """Information message delivered to a specific user.

    ``created_at`` is ``None`` while the remote store has not assigned the
    server timestamp yet. Records are immutable; state changes produce a new
    instance through :func:`dataclasses.replace`.
    """

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    read: bool = False
    created_at: datetime | None = None
    link: str | None = None
    expires_at: datetime | None = None
    priority: NotificationPriority | None = None

    def is_expired(self, now: datetime) -> bool:
        """Return whether the record is past its ``expires_at`` timestamp."""

        return self.expires_at is not None and self.expires_at <= now


__all__ = ["NotificationPriority", "NotificationRecord", "NotificationType"]
