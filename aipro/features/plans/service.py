"""
aipro/features/plans/service.py

Plan catalog service.

Handles:
- Default catalog (free, basic, pro, vip)
- Plan lookup and admin edits
"""

import logging
from typing import List, Optional

from aipro.core.errors import ConflictError, NotFoundError
from aipro.core.store import PAYMENTS, PLANS, SUBSCRIPTIONS, RecordStore
from aipro.models.plan import Plan

logger = logging.getLogger(__name__)


DEFAULT_PLANS: List[Plan] = [
    Plan(
        id="free",
        name="Free Starter",
        price=0,
        duration_days=3650,  # effectively forever
        daily_request_limit=5,
        features=["Basic AI Access", "Community Support", "Slow Speed"],
    ),
    Plan(
        id="basic",
        name="Basic",
        price=9.99,
        duration_days=30,
        daily_request_limit=50,
        features=["Faster Response", "Email Support", "50 Daily Requests"],
    ),
    Plan(
        id="pro",
        name="Pro",
        price=29.99,
        duration_days=30,
        daily_request_limit=150,
        features=["High Speed", "Priority Support", "150 Daily Requests", "Advanced Models"],
    ),
    Plan(
        id="vip",
        name="VIP",
        price=99.99,
        duration_days=30,
        daily_request_limit=1000,
        features=["Unlimited Speed", "24/7 Support", "1000 Daily Requests", "Early Access"],
    ),
]


class PlanCatalog:
    """Read and edit the plan catalog.

    Until an admin saves a plan the catalog reads as DEFAULT_PLANS.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def _default_rows(self) -> list:
        return [plan.model_dump(mode="json") for plan in DEFAULT_PLANS]

    def list_plans(self) -> List[Plan]:
        rows = self.store.get(PLANS, self._default_rows())
        return [Plan.model_validate(row) for row in rows]

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        """Get plan by ID, or None when it is not (or no longer) in the catalog."""
        for plan in self.list_plans():
            if plan.id == plan_id:
                return plan
        return None

    def require_plan(self, plan_id: str) -> Plan:
        plan = self.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        return plan

    def free_plan(self) -> Optional[Plan]:
        """First zero-price plan in catalog order (granted at registration)."""
        for plan in self.list_plans():
            if plan.is_free:
                return plan
        return None

    def is_referenced(self, plan_id: str) -> bool:
        """True when an active subscription or any payment points at the plan."""
        if any(
            row["plan_id"] == plan_id and row["status"] == "active"
            for row in self.store.get(SUBSCRIPTIONS, [])
        ):
            return True
        return any(row["plan_id"] == plan_id for row in self.store.get(PAYMENTS, []))

    def save_plan(self, plan: Plan) -> Plan:
        """
        Insert or replace a plan, keeping catalog order.

        Raises:
            ConflictError: The plan would change while a subscription or
                payment references it
        """
        with self.store.locked(PLANS):
            rows = self.store.get(PLANS, self._default_rows())
            row = plan.model_dump(mode="json")
            for index, existing in enumerate(rows):
                if existing["id"] == plan.id:
                    if existing != row and self.is_referenced(plan.id):
                        raise ConflictError(f"Plan {plan.id} is in use and cannot be changed")
                    rows[index] = row
                    break
            else:
                rows.append(row)
            self.store.put(PLANS, rows)
        logger.info("[plans] saved", extra={"plan_id": plan.id})
        return plan

    def delete_plan(self, plan_id: str) -> None:
        """
        Remove a plan from the catalog.

        Subscriptions and payments keep referencing the id; the authorization
        core treats such requesters as having no allowance.
        """
        with self.store.locked(PLANS):
            rows = self.store.get(PLANS, self._default_rows())
            remaining = [row for row in rows if row["id"] != plan_id]
            if len(remaining) == len(rows):
                raise NotFoundError(f"Plan {plan_id} not found")
            self.store.put(PLANS, remaining)
        logger.warning("[plans] deleted", extra={"plan_id": plan_id})
