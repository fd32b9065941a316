"""
aipro/models/plan.py

Plan catalog entry.

A plan is referenced by id from subscriptions and payments. The store does
not enforce that the referenced plan still exists.
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class Plan(BaseModel):
    """
    Plan represents a pricing tier.

    Examples:
    - free (price 0, effectively forever)
    - basic / pro / vip (30 days)
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    duration_days: int = Field(gt=0)
    daily_request_limit: int = Field(ge=0)
    features: List[str] = Field(default_factory=list)

    @property
    def is_free(self) -> bool:
        return self.price == 0
