"""SQLAlchemy model for persisted notifications."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text

from notification_feed.infrastructure.database import Base


def _new_notification_id() -> str:
    return uuid4().hex


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_user_created", "user_id", "created_at"),
    )

    id = Column(String(64), primary_key=True, default=_new_notification_id)
    user_id = Column(String(128), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(32), nullable=False, default="info")
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(), nullable=False)
    link = Column(String(500), nullable=True)
    expires_at = Column(DateTime(), nullable=True)
    priority = Column(String(16), nullable=True)


__all__ = ["NotificationModel"]
