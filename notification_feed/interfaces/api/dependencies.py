"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from notification_feed.config import Settings, get_settings
from notification_feed.infrastructure.notifications import (
    SqlCursorStore,
    SqlNotificationFeed,
)
from notification_feed.infrastructure.security import resolve_user_id

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")

_notification_feed = SqlNotificationFeed()
_cursor_store = SqlCursorStore()


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Return the user id carried by the bearer token."""

    try:
        return resolve_user_id(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_notification_feed() -> SqlNotificationFeed:
    """Return the shared SQL-backed notification feed."""

    return _notification_feed


def get_cursor_store() -> SqlCursorStore:
    return _cursor_store


def get_app_settings() -> Settings:
    return get_settings()
