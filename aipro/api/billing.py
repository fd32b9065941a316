"""
Billing API routes.

Payments are settled manually by an administrator.
- POST /api/billing/payments: Create a pending payment for a plan
- GET  /api/billing/payments: Current user's payments, newest first
"""
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from aipro.core.auth import get_services, require_service_available
from aipro.core.container import Services
from aipro.models.payment import Payment
from aipro.models.user import User

router = APIRouter(prefix="/api/billing", tags=["billing"])


class CreatePaymentRequest(BaseModel):
    plan_id: str


@router.post("/payments", response_model=Payment, status_code=201)
def create_payment(
    request: CreatePaymentRequest,
    user: User = Depends(require_service_available),
    services: Services = Depends(get_services),
):
    """
    Create a pending payment at the plan's list price.

    Errors:
        404: Unknown plan_id
    """
    plan = services.catalog.require_plan(request.plan_id)
    return services.payments.create_intent(user.id, plan.id, plan.price)


@router.get("/payments", response_model=List[Payment])
def my_payments(user: User = Depends(require_service_available), services: Services = Depends(get_services)):
    return services.payments.payments_for(user.id)
