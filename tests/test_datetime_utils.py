"""Tests for the timezone helpers used when storing timestamps."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from notification_feed.config import reset_settings_cache
from notification_feed.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)
from notification_feed.utils import datetime as datetime_utils


@pytest.fixture
def app_timezone(monkeypatch):
    """Switch ``APP_TIMEZONE`` for one test and restore the caches afterwards."""

    def _set(name: str) -> None:
        monkeypatch.setenv("APP_TIMEZONE", name)
        reset_settings_cache()
        datetime_utils._app_timezone.cache_clear()

    yield _set
    monkeypatch.undo()
    reset_settings_cache()
    datetime_utils._app_timezone.cache_clear()


def test_naive_values_are_read_as_app_wall_clock(app_timezone):
    app_timezone("America/Lima")

    value = ensure_app_timezone(datetime(2024, 5, 1, 7, 0))

    assert value.utcoffset() == timedelta(hours=-5)
    assert value.astimezone(timezone.utc) == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_aware_values_are_converted_and_stored_naive(app_timezone):
    app_timezone("America/Lima")
    aware = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    assert ensure_app_naive_datetime(aware) == datetime(2024, 5, 1, 7, 0)
    assert ensure_app_naive_datetime(None) is None
    assert ensure_app_timezone(None) is None


def test_unknown_timezone_falls_back_to_utc(app_timezone):
    app_timezone("Mars/Olympus_Mons")

    assert now_in_app_timezone().utcoffset() == timedelta(0)
