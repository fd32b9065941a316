"""
aipro/models/payment.py

Payment intent: pending -> paid | failed. Both outcomes are terminal.
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator

from aipro.core.clock import normalize_now


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Payment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    plan_id: str
    amount: float = Field(ge=0)
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return normalize_now(value)

    @property
    def is_terminal(self) -> bool:
        return self.status != PaymentStatus.PENDING
