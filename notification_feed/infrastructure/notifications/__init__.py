"""Realtime notification helpers for the infrastructure layer."""

from .broker import ChangeFeedBroker, change_feed_broker
from .cursors import InMemoryCursorStore, SqlCursorStore
from .feed import SqlNotificationFeed
from .serialization import serialize_notification, serialize_state

__all__ = [
    "ChangeFeedBroker",
    "change_feed_broker",
    "InMemoryCursorStore",
    "SqlCursorStore",
    "SqlNotificationFeed",
    "serialize_notification",
    "serialize_state",
]
