"""Configuration validation and structured logging."""

import json
import logging

import pytest

from aipro.core.config import DEFAULT_AUTH_SECRET, Settings, validate_config
from aipro.core.logging import JsonFormatter, latency_bucket_ms, log_event, request_id_ctx_var


def make_settings(**overrides):
    values = dict(_env_file=None, GROQ_API_KEY="gsk_test", AUTH_SECRET_KEY="prod-secret")
    values.update(overrides)
    return Settings(**values)


def test_defaults():
    cfg = Settings(_env_file=None)
    assert cfg.DATABASE_URL == "sqlite:///./aipro.db"
    assert cfg.USAGE_RETENTION_DAYS == 90
    assert cfg.AUTH_SECRET_KEY == DEFAULT_AUTH_SECRET


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("USAGE_RETENTION_DAYS", "14")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    cfg = Settings(_env_file=None)
    assert cfg.USAGE_RETENTION_DAYS == 14
    assert cfg.cors_origins() == ["http://a.test", "http://b.test"]


def test_valid_config_passes():
    assert validate_config(strict=True, settings_obj=make_settings(ENV="production"))


def test_missing_groq_key_warns(caplog):
    cfg = make_settings(GROQ_API_KEY=None)
    with caplog.at_level(logging.WARNING):
        assert validate_config(strict=False, settings_obj=cfg, logger=logging.getLogger("aipro.test"))
    assert "GROQ_API_KEY" in caplog.text


def test_default_secret_outside_development_fails_strict():
    cfg = make_settings(ENV="production", AUTH_SECRET_KEY=DEFAULT_AUTH_SECRET)
    with pytest.raises(RuntimeError) as exc:
        validate_config(strict=True, settings_obj=cfg)
    assert "AUTH_SECRET_KEY" in str(exc.value)
    assert DEFAULT_AUTH_SECRET not in str(exc.value)


def test_json_formatter_includes_extra_and_request_id():
    record = logging.LogRecord("aipro", logging.INFO, __file__, 1, "chat.reply", (), None)
    record.request_id = "rid-1"
    record.user_id = "u1"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "chat.reply"
    assert payload["request_id"] == "rid-1"
    assert payload["user_id"] == "u1"


def test_log_event_uses_context_request_id(caplog):
    token = request_id_ctx_var.set("rid-ctx")
    try:
        with caplog.at_level(logging.INFO, logger="aipro"):
            log_event("info", "chat.reply", user_id="u1", extra={"prompt": "x" * 1000})
    finally:
        request_id_ctx_var.reset(token)

    record = caplog.records[-1]
    assert record.request_id == "rid-ctx"
    assert record.prompt.endswith("...<truncated>")


@pytest.mark.parametrize(
    "latency,bucket",
    [(None, "unknown"), (5, "<10ms"), (50, "10-100ms"), (250, "100-500ms"), (750, "500-1000ms"), (5000, ">=1000ms")],
)
def test_latency_buckets(latency, bucket):
    assert latency_bucket_ms(latency) == bucket
