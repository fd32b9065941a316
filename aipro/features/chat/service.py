"""
Chat flow: quota check, usage accounting, then the AI call.

The authorize + record_usage pair runs under the per-user guard so two
concurrent requests cannot both spend the last unit of quota. The AI call
runs outside the guard. Usage is recorded before the call, so a request
that reaches the provider always consumes quota whatever the outcome.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from aipro.core.errors import ValidationError
from aipro.core.logging import log_event
from aipro.features.ai.service import AIClient
from aipro.features.authorization.service import AuthorizationCore, Decision

MAX_PROMPT_CHARS = 4000


@dataclass(frozen=True)
class ChatResult:
    decision: Decision
    reply: Optional[str] = None
    used_today: Optional[int] = None

    @property
    def remaining(self) -> Optional[int]:
        if self.decision.limit is None or self.used_today is None:
            return None
        return max(0, self.decision.limit - self.used_today)


class ChatService:
    def __init__(self, core: AuthorizationCore, ai: AIClient):
        self.core = core
        self.ai = ai

    def send(self, user_id: str, prompt: str, now: Optional[datetime] = None) -> ChatResult:
        """
        Run one chat turn for `user_id`.

        Raises:
            ValidationError: Empty or oversized prompt
        """
        text = (prompt or "").strip()
        if not text:
            raise ValidationError("Prompt must not be empty")
        if len(text) > MAX_PROMPT_CHARS:
            raise ValidationError(f"Prompt exceeds {MAX_PROMPT_CHARS} characters")

        with self.core.user_guard(user_id):
            decision = self.core.authorize(user_id, now)
            if not decision.allowed:
                return ChatResult(decision=decision)
            used_today = self.core.record_usage(user_id, now)

        reply = self.ai.complete(text)
        log_event(
            "info",
            "chat.reply",
            user_id=user_id,
            event_type="chat",
            extra={"plan_id": decision.plan_id, "used_today": used_today, "mocked": self.ai.mocked},
        )
        return ChatResult(decision=decision, reply=reply, used_today=used_today)
