"""
Account API routes.

- GET /api/me: Current user
- GET /api/me/dashboard: Plan, expiry, today's usage and total spent
- PATCH /api/me/password: Change own password
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from aipro.core.auth import get_current_user, get_services, require_service_available
from aipro.core.container import Services
from aipro.models.plan import Plan
from aipro.models.subscription import Subscription
from aipro.models.user import PublicUser, User

logger = logging.getLogger("aipro")

router = APIRouter(prefix="/api/me", tags=["account"])


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class DashboardResponse(BaseModel):
    plan: Optional[Plan]
    subscription: Optional[Subscription]
    days_remaining: Optional[int]
    usage_today: int
    daily_limit: Optional[int]
    usage_percent: Optional[float]
    total_spent: float
    computed_at: datetime


@router.get("", response_model=PublicUser)
def me(user: User = Depends(get_current_user)):
    return PublicUser.from_user(user)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(user: User = Depends(require_service_available), services: Services = Depends(get_services)):
    now = services.clock.now()
    summary = services.dashboard.account_summary(user.id, now)
    return DashboardResponse(computed_at=now, **summary)


@router.patch("/password", status_code=204)
def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(require_service_available),
    services: Services = Depends(get_services),
):
    """
    Errors:
        401: current_password does not match
        400: new_password too short
        503: maintenance mode
    """
    services.users.authenticate(user.email, request.current_password)
    services.users.change_password(user.id, request.new_password)
    logger.info("[account] password changed", extra={"user_id": user.id})
