"""
Admin API routes (role "admin" required).

- GET    /api/admin/users
- PATCH  /api/admin/users/{user_id}
- GET    /api/admin/payments
- POST   /api/admin/payments/{payment_id}/approve
- POST   /api/admin/payments/{payment_id}/reject
- GET    /api/admin/stats
- PUT    /api/admin/settings
- PUT    /api/admin/plans/{plan_id}
- DELETE /api/admin/plans/{plan_id}
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from aipro.core.auth import get_services, require_admin
from aipro.core.container import Services
from aipro.core.errors import ValidationError
from aipro.models.payment import Payment, PaymentStatus
from aipro.models.plan import Plan
from aipro.models.site_settings import SiteSettings
from aipro.models.user import PublicUser, Role, User

logger = logging.getLogger("aipro")

router = APIRouter(prefix="/api/admin", tags=["admin"])


class UpdateUserRequest(BaseModel):
    role: Role


class PlanRequest(BaseModel):
    name: str
    price: float = Field(ge=0)
    duration_days: int = Field(gt=0)
    daily_request_limit: int = Field(ge=0)
    features: List[str] = Field(default_factory=list)


class AdminUserView(PublicUser):
    """User row for the admin users table."""

    usage_today: int

    @classmethod
    def from_user_usage(cls, user: User, usage_today: int) -> "AdminUserView":
        return cls(**PublicUser.from_user(user).model_dump(), usage_today=usage_today)


class StatsResponse(BaseModel):
    total_users: int
    requests_today: int
    requests_total: int
    revenue: float
    pending_payments: int


def _audit(admin: User, action: str, target: str) -> None:
    logger.info("[admin] action", extra={"actor_id": admin.id, "action": action, "target": target})


@router.get("/users", response_model=List[AdminUserView])
def list_users(admin: User = Depends(require_admin), services: Services = Depends(get_services)):
    today = services.clock.day_key()
    return [
        AdminUserView.from_user_usage(u, services.tracker.current_count(u.id, today))
        for u in services.users.list_users()
    ]


@router.patch("/users/{user_id}", response_model=PublicUser)
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    admin: User = Depends(require_admin),
    services: Services = Depends(get_services),
):
    if user_id == admin.id and request.role != "admin":
        raise ValidationError("Admins cannot demote themselves")
    user = services.users.update_role(user_id, request.role)
    _audit(admin, "user.role", user_id)
    return PublicUser.from_user(user)


@router.get("/payments", response_model=List[Payment])
def list_payments(
    status: Optional[PaymentStatus] = None,
    admin: User = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.payments.list_payments(status)


@router.post("/payments/{payment_id}/approve", response_model=Payment)
def approve_payment(payment_id: str, admin: User = Depends(require_admin), services: Services = Depends(get_services)):
    payment = services.payments.approve(payment_id)
    _audit(admin, "payment.approve", payment_id)
    return payment


@router.post("/payments/{payment_id}/reject", response_model=Payment)
def reject_payment(payment_id: str, admin: User = Depends(require_admin), services: Services = Depends(get_services)):
    payment = services.payments.reject(payment_id)
    _audit(admin, "payment.reject", payment_id)
    return payment


@router.get("/stats", response_model=StatsResponse)
def stats(admin: User = Depends(require_admin), services: Services = Depends(get_services)):
    return StatsResponse(**services.dashboard.admin_stats())


@router.put("/settings", response_model=SiteSettings)
def save_settings(request: SiteSettings, admin: User = Depends(require_admin), services: Services = Depends(get_services)):
    saved = services.site.save_settings(request)
    _audit(admin, "settings.save", "settings")
    return saved


@router.put("/plans/{plan_id}", response_model=Plan)
def save_plan(
    plan_id: str,
    request: PlanRequest,
    admin: User = Depends(require_admin),
    services: Services = Depends(get_services),
):
    plan = services.catalog.save_plan(Plan(id=plan_id, **request.model_dump()))
    _audit(admin, "plan.save", plan_id)
    return plan


@router.delete("/plans/{plan_id}", status_code=204)
def delete_plan(plan_id: str, admin: User = Depends(require_admin), services: Services = Depends(get_services)):
    services.catalog.delete_plan(plan_id)
    _audit(admin, "plan.delete", plan_id)
