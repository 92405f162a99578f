from .notification import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationDeleteAllResponse,
    NotificationListResponse,
    NotificationMarkReadRequest,
    NotificationRead,
)

__all__ = [
    "MarkAllReadResponse",
    "NotificationCreate",
    "NotificationDeleteAllResponse",
    "NotificationListResponse",
    "NotificationMarkReadRequest",
    "NotificationRead",
]
