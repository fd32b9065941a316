from datetime import timedelta

from aipro.features.dashboard.service import days_remaining


def test_days_remaining_rounds_up(clock):
    now = clock.now()
    assert days_remaining(now + timedelta(days=30), now) == 30
    assert days_remaining(now + timedelta(days=29, hours=1), now) == 30
    assert days_remaining(now + timedelta(hours=1), now) == 1
    assert days_remaining(now - timedelta(days=2), now) == -2


def test_account_summary_without_subscription(services):
    summary = services.dashboard.account_summary("ghost")
    assert summary["subscription"] is None
    assert summary["plan"] is None
    assert summary["days_remaining"] is None
    assert summary["usage_today"] == 0
    assert summary["usage_percent"] is None
    assert summary["total_spent"] == 0


def test_account_summary_usage_percent(services):
    user = services.users.register("alice", "alice@example.com", "secret123")
    services.core.record_usage(user.id)
    services.core.record_usage(user.id)

    summary = services.dashboard.account_summary(user.id)
    assert summary["plan"].id == "free"
    assert summary["usage_today"] == 2
    assert summary["daily_limit"] == 5
    assert summary["usage_percent"] == 40.0


def test_admin_stats_counts_seeded_admin(services):
    stats = services.dashboard.admin_stats()
    assert stats == {
        "total_users": 1,
        "requests_today": 0,
        "requests_total": 0,
        "revenue": 0,
        "pending_payments": 0,
    }
