"""
aipro/models/subscription.py

Links a user to a plan for the interval [start_date, expires_at).
"""

from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, field_validator

from aipro.core.clock import normalize_now

SubscriptionStatus = Literal["active", "expired"]


class Subscription(BaseModel):
    """
    Subscription of one user to one plan.

    Constraint: each user has at most one subscription with status "active".
    The status flag is not synchronized with wall-clock expiry: a row whose
    expires_at has passed still reads "active" until a newer subscription
    replaces it.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    plan_id: str
    start_date: datetime
    expires_at: datetime
    status: SubscriptionStatus = "active"

    @field_validator("start_date", "expires_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are UTC; expiry checks compare against aware `now`
        return normalize_now(value)

    def is_expired_at(self, now: datetime) -> bool:
        return self.expires_at <= now
