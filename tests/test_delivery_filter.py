"""Unit tests for the alert delivery policies."""

from __future__ import annotations

from datetime import timedelta

import pytest

from notification_feed.application.use_cases.notifications import (
    CursorDeliveryFilter,
    RecentWindowDeliveryFilter,
    build_delivery_filter,
)
from notification_feed.config import Settings, get_settings, reset_settings_cache
from notification_feed.domain.entities import FreshnessCursor, NotificationDelta


@pytest.fixture
def window_filter(fixed_clock):
    return RecentWindowDeliveryFilter(clock=fixed_clock)


def test_window_filter_suppresses_backlog_on_reconnect(window_filter, record_factory):
    """Old records replayed on attach stay silent; recent ones alert."""

    cursor = FreshnessCursor(user_id="user-1")
    old = NotificationDelta.added(record_factory("A", minutes_ago=60))
    recent = NotificationDelta.added(record_factory("B", minutes_ago=1))

    assert window_filter.should_alert(old, cursor) is False
    assert window_filter.should_alert(recent, cursor) is True


@pytest.mark.parametrize(
    ("minutes_ago", "expected"),
    [(0, True), (9.99, True), (10, True), (10.01, False), (-1, True)],
)
def test_window_filter_boundary(window_filter, record_factory, minutes_ago, expected):
    delta = NotificationDelta.added(record_factory("a", minutes_ago=minutes_ago))

    assert window_filter.should_alert(delta, FreshnessCursor(user_id="user-1")) is expected


def test_window_filter_uses_explicit_now(record_factory, now):
    window_filter = RecentWindowDeliveryFilter(timedelta(minutes=5))
    delta = NotificationDelta.added(record_factory("a", minutes_ago=3))
    cursor = FreshnessCursor(user_id="user-1")

    assert window_filter.should_alert(delta, cursor, now=now) is True
    assert window_filter.should_alert(delta, cursor, now=now + timedelta(minutes=3)) is False


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        RecentWindowDeliveryFilter(timedelta(0))


@pytest.mark.parametrize("policy", [CursorDeliveryFilter(), RecentWindowDeliveryFilter()])
def test_only_added_deltas_with_timestamp_alert(policy, record_factory, now):
    cursor = FreshnessCursor(user_id="user-1")
    record = record_factory("a", minutes_ago=0)

    assert policy.should_alert(NotificationDelta.modified(record), cursor, now=now) is False
    assert policy.should_alert(NotificationDelta.removed(record), cursor, now=now) is False
    pending = record_factory("b", minutes_ago=None)
    assert policy.should_alert(NotificationDelta.added(pending), cursor, now=now) is False


def test_cursor_filter_alerts_only_after_last_checked(record_factory, now):
    cursor = FreshnessCursor(user_id="user-1", last_checked=now - timedelta(minutes=5))
    cursor_filter = CursorDeliveryFilter()

    fresh = NotificationDelta.added(record_factory("C", minutes_ago=2))
    stale = NotificationDelta.added(record_factory("D", minutes_ago=30))
    boundary = NotificationDelta.added(record_factory("E", minutes_ago=5))

    assert cursor_filter.should_alert(fresh, cursor) is True
    assert cursor_filter.should_alert(stale, cursor) is False
    assert cursor_filter.should_alert(boundary, cursor) is False


def test_cursor_filter_suppresses_seeded_records(record_factory):
    cursor = FreshnessCursor(user_id="user-1", seed_ids=frozenset({"A", "B"}))
    cursor_filter = CursorDeliveryFilter()

    assert cursor_filter.should_alert(NotificationDelta.added(record_factory("B")), cursor) is False
    assert cursor_filter.should_alert(NotificationDelta.added(record_factory("C")), cursor) is True


def test_cursor_filter_without_history_alerts_for_everything_new(record_factory):
    cursor = FreshnessCursor(user_id="user-1")
    delta = NotificationDelta.added(record_factory("a", minutes_ago=24 * 60))

    assert CursorDeliveryFilter().should_alert(delta, cursor) is True


def test_build_delivery_filter_follows_settings():
    base = {"database_url": "sqlite://", "secret_key": "secret"}

    assert isinstance(build_delivery_filter(Settings(**base)), CursorDeliveryFilter)

    window = build_delivery_filter(
        Settings(**base, alert_policy="window", alert_window_minutes=3)
    )
    assert isinstance(window, RecentWindowDeliveryFilter)
    assert window.window == timedelta(minutes=3)


def test_alert_policy_is_read_from_environment(monkeypatch):
    monkeypatch.setenv("ALERT_POLICY", "window")
    monkeypatch.setenv("ALERT_WINDOW_MINUTES", "5")
    reset_settings_cache()
    try:
        selected = build_delivery_filter(get_settings())
    finally:
        monkeypatch.undo()
        reset_settings_cache()

    assert isinstance(selected, RecentWindowDeliveryFilter)
    assert selected.window == timedelta(minutes=5)
    assert get_settings().alert_policy == "cursor"
