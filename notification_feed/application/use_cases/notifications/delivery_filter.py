"""Policies deciding whether a change-feed delta raises an interactive alert.

Two interchangeable strategies exist for the same goal of not replaying
alerts for notifications the user has already had the chance to see:

* :class:`CursorDeliveryFilter` (default) compares against the per-user
  freshness cursor and the ids of the subscription's initial fetch.
* :class:`RecentWindowDeliveryFilter` only alerts for notifications created
  within a fixed window, regardless of what the session has seen.

Exactly one of them is active for a subscription.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Protocol

from notification_feed.config import Settings
from notification_feed.domain.entities import (
    ChangeType,
    FreshnessCursor,
    NotificationDelta,
)
from notification_feed.utils import now_in_app_timezone

Clock = Callable[[], datetime]

DEFAULT_ALERT_WINDOW = timedelta(minutes=10)


class DeliveryFilter(Protocol):
    def should_alert(
        self,
        delta: NotificationDelta,
        cursor: FreshnessCursor,
        *,
        now: datetime | None = None,
    ) -> bool:
        """Return ``True`` when ``delta`` should surface as an alert."""


def _is_candidate(delta: NotificationDelta) -> bool:
    # Only inserts alert, and only once the server timestamp round-tripped.
    return (
        delta.change_type is ChangeType.ADDED
        and delta.record.created_at is not None
    )


class CursorDeliveryFilter:
    """Alert only for records newer than the user's last check."""

    def should_alert(
        self,
        delta: NotificationDelta,
        cursor: FreshnessCursor,
        *,
        now: datetime | None = None,
    ) -> bool:
        if not _is_candidate(delta):
            return False
        record = delta.record
        if record.id in cursor.seed_ids:
            return False
        if cursor.last_checked is None:
            return True
        return record.created_at > cursor.last_checked


class RecentWindowDeliveryFilter:
    """Alert only for records created within ``window`` of ``now``."""

    def __init__(
        self,
        window: timedelta = DEFAULT_ALERT_WINDOW,
        *,
        clock: Clock = now_in_app_timezone,
    ) -> None:
        if window <= timedelta(0):
            raise ValueError("The alert window must be positive")
        self.window = window
        self._clock = clock

    def should_alert(
        self,
        delta: NotificationDelta,
        cursor: FreshnessCursor,
        *,
        now: datetime | None = None,
    ) -> bool:
        if not _is_candidate(delta):
            return False
        reference = now if now is not None else self._clock()
        age = reference - delta.record.created_at
        return age <= self.window


def build_delivery_filter(
    settings: Settings, *, clock: Clock = now_in_app_timezone
) -> DeliveryFilter:
    """Return the filter selected by the ``ALERT_POLICY`` setting."""

    if settings.alert_policy == "window":
        return RecentWindowDeliveryFilter(
            timedelta(minutes=settings.alert_window_minutes), clock=clock
        )
    return CursorDeliveryFilter()


__all__ = [
    "CursorDeliveryFilter",
    "DEFAULT_ALERT_WINDOW",
    "DeliveryFilter",
    "RecentWindowDeliveryFilter",
    "build_delivery_filter",
]
