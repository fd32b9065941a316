"""
aipro/features/authorization/service.py

Authorization core: decides whether one AI request is allowed.

Handles:
- ALLOW / DENY decision from subscription, expiry, plan and daily quota
- Explicit usage recording, separate from the decision
- Structured logs for every decision
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional
import logging

from aipro.core.clock import Clock, normalize_now
from aipro.core.store import RecordStore
from aipro.features.plans.service import PlanCatalog
from aipro.features.subscriptions.service import SubscriptionLedger
from aipro.features.usage.service import QuotaTracker


logger = logging.getLogger(__name__)


class DecisionStatus(str, Enum):
    """Outcome of an authorization check."""
    ALLOW = "ALLOW"
    DENY = "DENY"


class DenialReason(str, Enum):
    NO_SUBSCRIPTION = "NoSubscription"
    SUBSCRIPTION_EXPIRED = "SubscriptionExpired"
    PLAN_NOT_FOUND = "PlanNotFound"
    QUOTA_EXCEEDED = "QuotaExceeded"


@dataclass(frozen=True)
class Decision:
    status: DecisionStatus
    remaining: Optional[int] = None
    reason: Optional[DenialReason] = None
    plan_id: Optional[str] = None
    used: Optional[int] = None
    limit: Optional[int] = None

    @property
    def allowed(self) -> bool:
        return self.status == DecisionStatus.ALLOW

    @classmethod
    def allow(cls, remaining: int, *, plan_id: str, used: int, limit: int) -> "Decision":
        return cls(status=DecisionStatus.ALLOW, remaining=remaining, plan_id=plan_id, used=used, limit=limit)

    @classmethod
    def deny(cls, reason: DenialReason, **context) -> "Decision":
        return cls(status=DecisionStatus.DENY, reason=reason, **context)


class AuthorizationCore:
    def __init__(
        self,
        store: RecordStore,
        ledger: SubscriptionLedger,
        catalog: PlanCatalog,
        tracker: QuotaTracker,
        clock: Clock,
    ):
        self.store = store
        self.ledger = ledger
        self.catalog = catalog
        self.tracker = tracker
        self.clock = clock

    def _now(self, now: Optional[datetime]) -> datetime:
        return normalize_now(now if now is not None else self.clock.now())

    def authorize(self, user_id: str, now: Optional[datetime] = None) -> Decision:
        """
        Decide whether `user_id` may make one AI request at `now`.

        Read-only: never increments usage. Expiry is computed from
        expires_at; the stored status flag is not trusted for it.
        """
        current = self._now(now)

        sub = self.ledger.active_subscription_for(user_id, current)
        if sub is None:
            return self._deny(user_id, DenialReason.NO_SUBSCRIPTION)

        if sub.expires_at <= current:
            return self._deny(
                user_id,
                DenialReason.SUBSCRIPTION_EXPIRED,
                plan_id=sub.plan_id,
                extra={"expires_at": sub.expires_at.isoformat()},
            )

        plan = self.catalog.get_plan(sub.plan_id)
        if plan is None:
            return self._deny(user_id, DenialReason.PLAN_NOT_FOUND, plan_id=sub.plan_id)

        used = self.tracker.current_count(user_id, self.clock.day_key(current))
        limit = plan.daily_request_limit
        if used >= limit:
            return self._deny(
                user_id,
                DenialReason.QUOTA_EXCEEDED,
                plan_id=plan.id,
                used=used,
                limit=limit,
            )

        decision = Decision.allow(limit - used, plan_id=plan.id, used=used, limit=limit)
        logger.info(
            "[authorization] ALLOW",
            extra={"user_id": user_id, "plan_id": plan.id, "used": used, "limit": limit, "remaining": decision.remaining},
        )
        return decision

    def _deny(self, user_id: str, reason: DenialReason, *, extra: Optional[dict] = None, **context) -> Decision:
        fields = {"user_id": user_id, "reason": reason.value}
        fields.update({k: v for k, v in context.items() if v is not None})
        if extra:
            fields.update(extra)
        logger.warning("[authorization] DENY", extra=fields)
        return Decision.deny(reason, **context)

    def record_usage(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Consume one request from today's quota. Returns the new count."""
        day = self.clock.day_key(self._now(now))
        count = self.tracker.increment(user_id, day)
        logger.info("[authorization] usage recorded", extra={"user_id": user_id, "day": day, "count": count})
        return count

    @contextmanager
    def user_guard(self, user_id: str) -> Iterator[None]:
        """Serialize authorize + record_usage for one user."""
        with self.store.locked_user(user_id):
            yield
