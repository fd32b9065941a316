"""Quota tracker: per-user, per-day request counters."""

import threading

from aipro.core.clock import day_key
from aipro.features.usage.service import QuotaTracker


def test_absent_counter_reads_zero(store):
    tracker = QuotaTracker(store)
    assert tracker.current_count("u1", "2026-03-10") == 0


def test_increment_creates_then_adds(store):
    tracker = QuotaTracker(store)
    assert tracker.increment("u1", "2026-03-10") == 1
    assert tracker.increment("u1", "2026-03-10") == 2
    assert tracker.increment("u1", "2026-03-10") == 3
    assert tracker.current_count("u1", "2026-03-10") == 3


def test_counters_are_scoped_by_user_and_day(store):
    tracker = QuotaTracker(store)
    tracker.increment("u1", "2026-03-10")
    tracker.increment("u1", "2026-03-10")
    tracker.increment("u2", "2026-03-10")
    tracker.increment("u1", "2026-03-11")

    assert tracker.current_count("u1", "2026-03-10") == 2
    assert tracker.current_count("u2", "2026-03-10") == 1
    assert tracker.current_count("u1", "2026-03-11") == 1
    assert tracker.current_count("u2", "2026-03-11") == 0


def test_new_day_starts_at_zero_and_old_day_is_kept(store):
    tracker = QuotaTracker(store)
    for _ in range(5):
        tracker.increment("u1", "2026-03-10")

    assert tracker.current_count("u1", "2026-03-11") == 0
    assert tracker.current_count("u1", "2026-03-10") == 5
    assert len(tracker.usage_for("u1")) == 1


def test_day_key_is_utc_calendar_date(clock):
    assert clock.day_key() == "2026-03-10"
    clock.advance(hours=11, minutes=59, seconds=59)
    assert clock.day_key() == "2026-03-10"
    clock.advance(seconds=1)
    assert clock.day_key() == "2026-03-11"


def test_day_key_normalizes_offsets():
    from datetime import datetime, timedelta, timezone

    # 23:30 at UTC-05:00 is already the next UTC day
    local = datetime(2026, 3, 10, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert day_key(local) == "2026-03-11"


def test_totals(store):
    tracker = QuotaTracker(store)
    tracker.increment("u1", "2026-03-09")
    tracker.increment("u1", "2026-03-10")
    tracker.increment("u2", "2026-03-10")

    assert tracker.total_for_day("2026-03-10") == 2
    assert tracker.total_requests() == 3
    assert len(tracker.all_usage()) == 3


def test_prune_drops_only_older_days(store):
    tracker = QuotaTracker(store)
    tracker.increment("u1", "2026-01-01")
    tracker.increment("u1", "2026-02-28")
    tracker.increment("u1", "2026-03-10")

    assert tracker.prune("2026-03-01", dry_run=True) == 2
    assert len(tracker.all_usage()) == 3

    assert tracker.prune("2026-03-01") == 2
    assert [log.date for log in tracker.all_usage()] == ["2026-03-10"]


def test_concurrent_increments_are_not_lost(file_store):
    tracker = QuotaTracker(file_store)
    threads_count = 8
    per_thread = 10

    def worker():
        for _ in range(per_thread):
            tracker.increment("u1", "2026-03-10")

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert tracker.current_count("u1", "2026-03-10") == threads_count * per_thread
