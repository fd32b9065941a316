"""
aipro/features/payments/service.py

Payment processor.

Payments are approved manually by an administrator. Approval is the only
path from money to access rights:

    pending --approve--> paid   (activates a subscription, once)
    pending --reject---> failed

Both outcomes are terminal; approving or rejecting a settled payment is a
no-op.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import uuid4

from aipro.core.clock import Clock, normalize_now
from aipro.core.errors import NotFoundError
from aipro.core.store import PAYMENTS, RecordStore
from aipro.features.plans.service import PlanCatalog
from aipro.features.subscriptions.service import SubscriptionLedger, build_subscription
from aipro.models.payment import Payment, PaymentStatus

logger = logging.getLogger(__name__)


class PaymentProcessor:
    def __init__(self, store: RecordStore, catalog: PlanCatalog, ledger: SubscriptionLedger, clock: Clock):
        self.store = store
        self.catalog = catalog
        self.ledger = ledger
        self.clock = clock

    def _all(self) -> List[Payment]:
        return [Payment.model_validate(row) for row in self.store.get(PAYMENTS, [])]

    def get_payment(self, payment_id: str) -> Optional[Payment]:
        for payment in self._all():
            if payment.id == payment_id:
                return payment
        return None

    def create_intent(self, user_id: str, plan_id: str, amount: float, now: Optional[datetime] = None) -> Payment:
        """Store a pending payment. Grants no access on its own."""
        payment = Payment(
            id=str(uuid4()),
            user_id=user_id,
            plan_id=plan_id,
            amount=amount,
            status=PaymentStatus.PENDING,
            created_at=normalize_now(now or self.clock.now()),
        )
        with self.store.locked(PAYMENTS):
            rows = self.store.get(PAYMENTS, [])
            rows.append(payment.model_dump(mode="json"))
            self.store.put(PAYMENTS, rows)
        logger.info(
            "[payments] intent created",
            extra={"payment_id": payment.id, "user_id": user_id, "plan_id": plan_id, "amount": amount},
        )
        return payment

    def _transition(self, payment_id: str, target: PaymentStatus) -> Tuple[Payment, bool]:
        """Compare-and-set pending -> target.

        Returns (payment, won). Only the caller that moved the payment out of
        pending gets won=True.
        """
        with self.store.locked(PAYMENTS):
            rows = self.store.get(PAYMENTS, [])
            for row in rows:
                if row["id"] == payment_id:
                    break
            else:
                raise NotFoundError(f"Payment {payment_id} not found")

            if row["status"] != PaymentStatus.PENDING.value:
                return Payment.model_validate(row), False

            row["status"] = target.value
            self.store.put(PAYMENTS, rows)
            return Payment.model_validate(row), True

    def approve(self, payment_id: str, now: Optional[datetime] = None) -> Payment:
        """
        Mark a pending payment paid and activate the purchased plan.

        Raises:
            NotFoundError: If no such payment exists
        """
        payment, won = self._transition(payment_id, PaymentStatus.PAID)
        if not won:
            logger.info(
                "[payments] approve no-op",
                extra={"payment_id": payment_id, "status": payment.status.value},
            )
            return payment

        logger.info("[payments] approved", extra={"payment_id": payment.id, "user_id": payment.user_id})

        plan = self.catalog.get_plan(payment.plan_id)
        if plan is None:
            # Payment stays paid but grants nothing
            logger.warning(
                "[payments] plan missing, no subscription activated",
                extra={"payment_id": payment.id, "user_id": payment.user_id, "plan_id": payment.plan_id},
            )
            return payment

        started = normalize_now(now or self.clock.now())
        self.ledger.activate(build_subscription(payment.user_id, plan.id, started, plan.duration_days))
        return payment

    def reject(self, payment_id: str) -> Payment:
        """
        Mark a pending payment failed. No subscription change.

        Raises:
            NotFoundError: If no such payment exists
        """
        payment, won = self._transition(payment_id, PaymentStatus.FAILED)
        if won:
            logger.info("[payments] rejected", extra={"payment_id": payment.id, "user_id": payment.user_id})
        else:
            logger.info(
                "[payments] reject no-op",
                extra={"payment_id": payment_id, "status": payment.status.value},
            )
        return payment

    def payments_for(self, user_id: str) -> List[Payment]:
        """User's payments, newest first."""
        mine = [p for p in self._all() if p.user_id == user_id]
        return sorted(mine, key=lambda p: p.created_at, reverse=True)

    def list_payments(self, status: Optional[PaymentStatus] = None) -> List[Payment]:
        payments = self._all()
        if status is not None:
            payments = [p for p in payments if p.status == status]
        return payments

    def total_spent(self, user_id: str) -> float:
        return round(sum(p.amount for p in self._all() if p.user_id == user_id and p.status == PaymentStatus.PAID), 2)

    def revenue(self) -> float:
        return round(sum(p.amount for p in self._all() if p.status == PaymentStatus.PAID), 2)
