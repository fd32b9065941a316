"""
aipro/features/subscriptions/service.py

Subscription ledger.

Handles:
- Active subscription lookup (no lazy expiry)
- Activation with forced expiry of the previous active row
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import uuid4

from aipro.core.clock import normalize_now
from aipro.core.store import SUBSCRIPTIONS, RecordStore
from aipro.models.subscription import Subscription

logger = logging.getLogger(__name__)


def build_subscription(user_id: str, plan_id: str, now: datetime, days: int) -> Subscription:
    """New active subscription covering [now, now + days)."""
    start = normalize_now(now)
    return Subscription(
        id=str(uuid4()),
        user_id=user_id,
        plan_id=plan_id,
        start_date=start,
        expires_at=start + timedelta(days=days),
        status="active",
    )


class SubscriptionLedger:
    def __init__(self, store: RecordStore):
        self.store = store

    def _all(self) -> List[Subscription]:
        return [Subscription.model_validate(row) for row in self.store.get(SUBSCRIPTIONS, [])]

    def active_subscription_for(self, user_id: str, now: Optional[datetime] = None) -> Optional[Subscription]:
        """
        Return the subscription with status "active" for the user.

        A row whose expires_at <= now is still returned: the ledger never
        expires on read, callers compare expires_at against `now` themselves.
        `now` is accepted for interface symmetry and is not used for filtering.
        """
        for sub in self._all():
            if sub.user_id == user_id and sub.status == "active":
                return sub
        return None

    def activate(self, subscription: Subscription) -> Subscription:
        """
        Expire every other subscription of the user, then insert this one as active.

        Both writes land in one put under the user and subscriptions locks, so
        no reader can observe two active rows for the same user.
        """
        new_sub = subscription.model_copy(update={"status": "active"})
        with self.store.locked_user(new_sub.user_id):
            with self.store.locked(SUBSCRIPTIONS):
                rows = self.store.get(SUBSCRIPTIONS, [])
                expired_ids = []
                for row in rows:
                    if row["user_id"] == new_sub.user_id and row["status"] != "expired":
                        row["status"] = "expired"
                        expired_ids.append(row["id"])
                rows.append(new_sub.model_dump(mode="json"))
                self.store.put(SUBSCRIPTIONS, rows)

        logger.info(
            "[subscriptions] activated",
            extra={
                "user_id": new_sub.user_id,
                "plan_id": new_sub.plan_id,
                "subscription_id": new_sub.id,
                "expires_at": new_sub.expires_at.isoformat(),
                "expired_ids": expired_ids,
            },
        )
        return new_sub

    def subscriptions_for(self, user_id: str) -> List[Subscription]:
        return [sub for sub in self._all() if sub.user_id == user_id]

    def all_subscriptions(self) -> List[Subscription]:
        return self._all()
