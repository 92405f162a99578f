"""Conversions between stored wall-clock values and aware datetimes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from functools import lru_cache

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from notification_feed.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _app_timezone() -> tzinfo:
    name = (get_settings().app_timezone or "").strip()
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown APP_TIMEZONE %r, using UTC", name)
        return timezone.utc


def now_in_app_timezone() -> datetime:
    """Return the current time in the configured timezone."""

    return datetime.now(tz=_app_timezone())


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Attach or convert ``value`` to the configured timezone.

    Naive values are read as wall-clock time of that timezone, which is how
    they come back from the database and from clients that omit an offset.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=_app_timezone())
    return value.astimezone(_app_timezone())


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    """Return ``value`` as naive wall-clock time of the configured timezone."""

    if value is None:
        return None
    return ensure_app_timezone(value).replace(tzinfo=None)
