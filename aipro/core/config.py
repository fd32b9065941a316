import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List, Optional

DEFAULT_AUTH_SECRET = "dev-insecure-secret-change-me"


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Record store
    DATABASE_URL: str = "sqlite:///./aipro.db"

    # AI provider (Groq)
    GROQ_API_KEY: Optional[str] = None
    AI_MODEL: str = "llama-3.1-8b-instant"
    AI_MAX_TOKENS: int = 1024
    AI_TEMPERATURE: float = 0.7

    # Session tokens
    AUTH_SECRET_KEY: str = DEFAULT_AUTH_SECRET
    AUTH_TOKEN_TTL_MINUTES: int = 60 * 24

    # Seed admin (created when the user collection is empty)
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_USERNAME: str = "Admin"

    # Usage counters older than this are pruned by the retention worker
    USAGE_RETENTION_DAYS: int = 90

    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only the names of problem keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("aipro")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    if not cfg.GROQ_API_KEY:
        problems.append("GROQ_API_KEY missing (AI replies will be mocked)")
    if cfg.ENV.lower() != "development" and cfg.AUTH_SECRET_KEY == DEFAULT_AUTH_SECRET:
        problems.append("AUTH_SECRET_KEY uses the development default")

    if problems:
        message = f"Configuration problems: {'; '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
