"""
Health endpoints.

Lightweight checks for operational monitoring without exposing secrets.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from aipro.core.auth import get_services
from aipro.core.container import Services

logger = logging.getLogger("aipro")

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz(services: Services = Depends(get_services)):
    """Readiness check: record store connectivity."""
    if not services.store.check_connection():
        logger.error("[readyz] record store unreachable")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "store unreachable"})
    return {"status": "ok"}
