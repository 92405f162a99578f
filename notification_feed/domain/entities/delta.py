"""Change-feed events describing a mutation of a user's notification set."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .notification import NotificationRecord


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class NotificationDelta:
    """One change-feed event carrying the affected record."""

    change_type: ChangeType
    record: NotificationRecord

    @classmethod
    def added(cls, record: NotificationRecord) -> "NotificationDelta":
        return cls(ChangeType.ADDED, record)

    @classmethod
    def modified(cls, record: NotificationRecord) -> "NotificationDelta":
        return cls(ChangeType.MODIFIED, record)

    @classmethod
    def removed(cls, record: NotificationRecord) -> "NotificationDelta":
        return cls(ChangeType.REMOVED, record)


__all__ = ["ChangeType", "NotificationDelta"]
