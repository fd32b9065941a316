"""
Chat API route.

- POST /api/chat: One prompt, gated by subscription and daily quota
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from aipro.core.auth import get_services, require_service_available
from aipro.core.container import Services
from aipro.core.errors import AccessDeniedError, QuotaExceededError
from aipro.features.authorization.service import Decision, DenialReason
from aipro.models.user import User

router = APIRouter(prefix="/api", tags=["chat"])

DENIAL_MESSAGES = {
    DenialReason.NO_SUBSCRIPTION: "No active subscription. Please choose a plan.",
    DenialReason.SUBSCRIPTION_EXPIRED: "Subscription expired. Please renew.",
    DenialReason.PLAN_NOT_FOUND: "Your plan is no longer available. Please choose a new plan.",
    DenialReason.QUOTA_EXCEEDED: "Daily limit reached. Upgrade your plan for more.",
}

DENIAL_CODES = {
    DenialReason.NO_SUBSCRIPTION: "no_subscription",
    DenialReason.SUBSCRIPTION_EXPIRED: "subscription_expired",
    DenialReason.PLAN_NOT_FOUND: "plan_not_found",
    DenialReason.QUOTA_EXCEEDED: "quota_exceeded",
}


class ChatRequest(BaseModel):
    prompt: str


class ChatResponse(BaseModel):
    reply: str
    plan_id: Optional[str]
    used_today: Optional[int]
    remaining_today: Optional[int]


def denial_error(decision: Decision) -> AccessDeniedError:
    message = DENIAL_MESSAGES[decision.reason]
    code = DENIAL_CODES[decision.reason]
    if decision.reason == DenialReason.QUOTA_EXCEEDED:
        return QuotaExceededError(message, code=code)
    return AccessDeniedError(message, code=code)


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    user: User = Depends(require_service_available),
    services: Services = Depends(get_services),
):
    """
    Errors:
        400: Empty prompt
        403: no_subscription | subscription_expired | plan_not_found
        429: quota_exceeded
        503: maintenance
    """
    result = services.chat.send(user.id, request.prompt)
    if not result.decision.allowed:
        raise denial_error(result.decision)
    return ChatResponse(
        reply=result.reply,
        plan_id=result.decision.plan_id,
        used_today=result.used_today,
        remaining_today=result.remaining,
    )
