"""Notification delivery core and the commands issued against the store."""

from .commands import (
    create_notification,
    delete_all_notifications,
    delete_notification,
    mark_all_notifications_read,
    mark_notifications_read,
)
from .delivery_filter import (
    CursorDeliveryFilter,
    DeliveryFilter,
    RecentWindowDeliveryFilter,
    build_delivery_filter,
)
from .read_state import ReadStateCoordinator, ReadStateResult
from .session import NotificationSession
from .store import NotificationStore
from .subscriber import ChangeFeedSubscriber, InitialFetchError, Subscription

__all__ = [
    "ChangeFeedSubscriber",
    "CursorDeliveryFilter",
    "DeliveryFilter",
    "InitialFetchError",
    "NotificationSession",
    "NotificationStore",
    "ReadStateCoordinator",
    "ReadStateResult",
    "RecentWindowDeliveryFilter",
    "Subscription",
    "build_delivery_filter",
    "create_notification",
    "delete_all_notifications",
    "delete_notification",
    "mark_all_notifications_read",
    "mark_notifications_read",
]
