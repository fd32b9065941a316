import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware

if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from aipro.api import account, admin, auth, billing, chat, health, plans, settings as settings_api
from aipro.core.config import settings, validate_config
from aipro.core.container import Services, build_services
from aipro.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from aipro.core.logging import configure_logging
from aipro.core.middleware.request_id import RequestIdMiddleware


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the API. Pass `services` to inject a prepared graph (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger = logging.getLogger("aipro")
        logger.info("Starting AI Pro backend...")
        owned = getattr(app.state, "services", None) is None
        if owned:
            app.state.services = build_services()
        try:
            yield
        finally:
            if owned:
                app.state.services.close()
            logger.info("Stopping AI Pro backend...")

    app = FastAPI(title="AI Pro Platform", lifespan=lifespan)
    if services is not None:
        app.state.services = services

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(account.router)
    app.include_router(plans.router)
    app.include_router(billing.router)
    app.include_router(chat.router)
    app.include_router(settings_api.router)
    app.include_router(admin.router)
    return app


configure_logging(settings.ENV)
validate_config(strict=settings.CONFIG_STRICT)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("aipro.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
