"""Chat flow: quota gate, usage accounting, AI call."""
import threading

import groq
import pytest

from aipro.core.errors import ValidationError
from aipro.features.ai.service import ERROR_REPLY, AIClient
from aipro.features.authorization.service import DenialReason
from aipro.features.chat.service import MAX_PROMPT_CHARS, ChatService


@pytest.fixture
def chat(services):
    user = services.users.register("alice", "alice@example.com", "secret123")
    return services.chat, user, services


def test_allowed_turn_records_usage_and_replies(chat, fake_groq):
    service, user, services = chat

    result = service.send(user.id, "  hi  ")

    assert result.decision.allowed
    assert result.reply == "Hello from the model"
    assert result.used_today == 1
    assert result.remaining == 4
    assert fake_groq.calls[0]["messages"][-1]["content"] == "hi"
    assert services.tracker.current_count(user.id, services.clock.day_key()) == 1


def test_denied_turn_skips_ai_and_usage(chat, fake_groq):
    service, user, services = chat
    for _ in range(5):
        assert service.send(user.id, "hi").decision.allowed

    result = service.send(user.id, "one more")

    assert not result.decision.allowed
    assert result.decision.reason == DenialReason.QUOTA_EXCEEDED
    assert result.reply is None
    assert len(fake_groq.calls) == 5
    assert services.tracker.current_count(user.id, services.clock.day_key()) == 5


def test_unsubscribed_user_denied(services, fake_groq):
    result = services.chat.send("ghost", "hi")
    assert result.decision.reason == DenialReason.NO_SUBSCRIPTION
    assert fake_groq.calls == []


def test_provider_failure_still_consumes_quota(chat, fake_groq):
    service, user, services = chat
    fake_groq.chat.completions.error = groq.GroqError("boom")

    result = service.send(user.id, "hi")

    assert result.reply == ERROR_REPLY
    assert result.used_today == 1


@pytest.mark.parametrize("prompt", ["", "   ", "x" * (MAX_PROMPT_CHARS + 1)])
def test_invalid_prompt(chat, prompt):
    service, user, services = chat
    with pytest.raises(ValidationError):
        service.send(user.id, prompt)
    assert services.tracker.current_count(user.id, services.clock.day_key()) == 0


def test_concurrent_turns_never_exceed_limit(file_store, clock, test_settings):
    from aipro.core.container import build_services

    services = build_services(settings_obj=test_settings, store=file_store, clock=clock, ai=AIClient(None))
    user = services.users.register("alice", "alice@example.com", "secret123")
    service = ChatService(services.core, services.ai)

    barrier = threading.Barrier(12)
    results = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        result = service.send(user.id, "hi")
        with lock:
            results.append(result)

    threads = [threading.Thread(target=worker) for _ in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    allowed = [r for r in results if r.decision.allowed]
    assert len(allowed) == 5
    assert sorted(r.used_today for r in allowed) == [1, 2, 3, 4, 5]
    assert services.tracker.current_count(user.id, clock.day_key()) == 5
