"""
Account dashboard and admin statistics (read models).

Pure reads over the ledger, catalog, tracker and payments; no writes.
"""

import math
from datetime import datetime
from typing import Any, Dict, Optional

from aipro.core.clock import Clock, normalize_now
from aipro.features.payments.service import PaymentProcessor
from aipro.features.plans.service import PlanCatalog
from aipro.features.subscriptions.service import SubscriptionLedger
from aipro.features.usage.service import QuotaTracker
from aipro.features.users.service import UserDirectory

SECONDS_PER_DAY = 24 * 60 * 60


def days_remaining(expires_at: datetime, now: datetime) -> int:
    """Whole days left, rounded up; negative once expired."""
    return math.ceil((expires_at - now).total_seconds() / SECONDS_PER_DAY)


class DashboardService:
    def __init__(
        self,
        ledger: SubscriptionLedger,
        catalog: PlanCatalog,
        tracker: QuotaTracker,
        payments: PaymentProcessor,
        users: UserDirectory,
        clock: Clock,
    ):
        self.ledger = ledger
        self.catalog = catalog
        self.tracker = tracker
        self.payments = payments
        self.users = users
        self.clock = clock

    def account_summary(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Current plan, expiry, today's usage and total spent for one user.

        Returns:
            {
                "subscription": Subscription | None,
                "plan": Plan | None,
                "days_remaining": int | None,
                "usage_today": int,
                "daily_limit": int | None,
                "usage_percent": float | None,
                "total_spent": float
            }
        """
        current = normalize_now(now or self.clock.now())
        sub = self.ledger.active_subscription_for(user_id, current)
        plan = self.catalog.get_plan(sub.plan_id) if sub else None
        usage = self.tracker.current_count(user_id, self.clock.day_key(current))

        limit = plan.daily_request_limit if plan else None
        if limit:
            percent = min(100.0, round(usage / limit * 100, 1))
        elif limit == 0:
            percent = 100.0
        else:
            percent = None

        return {
            "subscription": sub,
            "plan": plan,
            "days_remaining": days_remaining(sub.expires_at, current) if sub else None,
            "usage_today": usage,
            "daily_limit": limit,
            "usage_percent": percent,
            "total_spent": self.payments.total_spent(user_id),
        }

    def admin_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        current = normalize_now(now or self.clock.now())
        return {
            "total_users": len(self.users.list_users()),
            "requests_today": self.tracker.total_for_day(self.clock.day_key(current)),
            "requests_total": self.tracker.total_requests(),
            "revenue": self.payments.revenue(),
            "pending_payments": len([p for p in self.payments.list_payments() if not p.is_terminal]),
        }
