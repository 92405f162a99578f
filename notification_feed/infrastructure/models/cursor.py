"""SQLAlchemy model storing the freshness cursor of each user."""

from sqlalchemy import Column, DateTime, String

from notification_feed.infrastructure.database import Base


class NotificationCursorModel(Base):
    """Last time a user's notification feed was opened."""

    __tablename__ = "notification_cursor"

    user_id = Column(String(128), primary_key=True)
    last_checked = Column(DateTime(), nullable=False)


__all__ = ["NotificationCursorModel"]
