"""Unit tests for the in-memory notification store."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

from notification_feed.application.use_cases.notifications import NotificationStore
from notification_feed.domain.entities import NotificationDelta


def _assert_count_is_derived(store: NotificationStore) -> None:
    assert store.get_unread_count() == sum(1 for r in store.get_all() if not r.read)


def test_added_delta_is_idempotent(record_factory):
    store = NotificationStore("user-1")
    delta = NotificationDelta.added(record_factory("a"))

    assert store.apply_delta(delta) is True
    assert store.apply_delta(delta) is False

    assert [record.id for record in store.get_all()] == ["a"]
    assert store.get_unread_count() == 1


def test_get_all_is_sorted_by_created_at_descending(record_factory):
    store = NotificationStore()
    for notification_id, minutes_ago in [("old", 60), ("new", 1), ("mid", 10)]:
        store.apply_delta(
            NotificationDelta.added(record_factory(notification_id, minutes_ago=minutes_ago))
        )
    store.apply_delta(NotificationDelta.added(record_factory("pending", minutes_ago=None)))

    assert [record.id for record in store.get_all()] == ["pending", "new", "mid", "old"]


def test_modified_replaces_fields_but_keeps_created_at(record_factory):
    store = NotificationStore()
    original = record_factory("a", minutes_ago=5)
    store.apply_delta(NotificationDelta.added(original))

    edited = replace(original, title="Edited", created_at=original.created_at + timedelta(hours=1))
    assert store.apply_delta(NotificationDelta.modified(edited)) is True

    cached = store.get("a")
    assert cached.title == "Edited"
    assert cached.created_at == original.created_at


def test_modified_for_unknown_record_is_ignored(record_factory):
    store = NotificationStore()

    assert store.apply_delta(NotificationDelta.modified(record_factory("ghost"))) is False
    assert store.get_all() == []


def test_read_never_reverts_through_deltas(record_factory):
    store = NotificationStore()
    record = record_factory("a")
    store.apply_delta(NotificationDelta.added(record))
    store.mark_read(["a"])

    store.apply_delta(NotificationDelta.modified(replace(record, read=False, title="Again")))
    store.apply_delta(NotificationDelta.added(replace(record, read=False)))

    assert store.get("a").read is True
    assert store.get("a").title == "Again"
    assert store.get_unread_count() == 0


def test_removed_then_added_restores_unread_state(record_factory):
    store = NotificationStore()
    record = record_factory("a")
    store.apply_delta(NotificationDelta.added(record))
    store.mark_read(["a"])

    store.apply_delta(NotificationDelta.removed(record))
    store.apply_delta(NotificationDelta.added(record))

    assert store.get("a").read is False
    assert store.get_unread_count() == 1


def test_unread_count_tracks_every_mutation(record_factory):
    store = NotificationStore()
    records = [record_factory(str(i), minutes_ago=i, read=i % 2 == 0) for i in range(1, 7)]

    for record in records:
        store.apply_delta(NotificationDelta.added(record))
        _assert_count_is_derived(store)

    store.mark_read(["1", "3"])
    _assert_count_is_derived(store)
    store.apply_delta(NotificationDelta.removed(records[4]))
    _assert_count_is_derived(store)
    assert store.get_unread_count() == 0


def test_mark_read_reports_only_changed_ids(record_factory):
    store = NotificationStore()
    store.apply_delta(NotificationDelta.added(record_factory("a")))
    store.apply_delta(NotificationDelta.added(record_factory("b", read=True)))

    assert store.mark_read(["a", "b", "missing"]) == ["a"]
    assert store.mark_read(["a"]) == []


def test_prune_expired_removes_past_records(record_factory, now):
    store = NotificationStore()
    store.apply_delta(
        NotificationDelta.added(record_factory("gone", expires_at=now - timedelta(seconds=1)))
    )
    store.apply_delta(
        NotificationDelta.added(record_factory("kept", expires_at=now + timedelta(days=1)))
    )

    assert store.prune_expired(now) == ["gone"]
    assert [record.id for record in store.get_all()] == ["kept"]
    assert store.get_unread_count() == 1


def test_watchers_run_after_mutations_and_can_unsubscribe(record_factory):
    store = NotificationStore()
    seen: list[int] = []
    unwatch = store.watch(lambda s: seen.append(s.get_unread_count()))

    store.apply_delta(NotificationDelta.added(record_factory("a")))
    store.apply_delta(NotificationDelta.added(record_factory("a")))
    store.mark_read(["a"])
    unwatch()
    unwatch()
    store.clear()

    assert seen == [1, 0]


def test_failing_watcher_does_not_block_others(record_factory):
    store = NotificationStore()
    seen: list[str] = []

    def _broken(_store):
        raise RuntimeError("boom")

    store.watch(_broken)
    store.watch(lambda s: seen.append("ok"))

    store.apply_delta(NotificationDelta.added(record_factory("a")))

    assert seen == ["ok"]
    assert "a" in store
