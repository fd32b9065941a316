"""
Auth utilities for the AI Pro API.

Issues and validates HS256 session JWTs and resolves the current user from
the Authorization header.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import jwt
from fastapi import Depends, Request

from aipro.core.container import Services
from aipro.core.errors import AuthenticationError, MaintenanceError, PermissionError
from aipro.models.user import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def issue_token(user: User, secret: str, ttl_minutes: int, now: Optional[datetime] = None) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "role": user.role,
        "iat": issued,
        "exp": issued + timedelta(minutes=ttl_minutes),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str, now: Optional[datetime] = None) -> str:
    """
    Verify a session JWT and extract user_id.

    Expiry is checked against `now` (the service clock) when given, else
    against wall time.

    Raises:
        AuthenticationError: Invalid or expired token
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"verify_exp": now is None, "verify_iat": now is None})
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise AuthenticationError("Invalid token")

    if now is not None and payload.get("exp", 0) <= now.timestamp():
        raise AuthenticationError("Token expired")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token")
    return user_id


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_current_user(request: Request, services: Services = Depends(get_services)) -> User:
    """
    Resolve the authenticated user from `Authorization: Bearer <jwt>`.

    Raises:
        AuthenticationError: Missing/invalid token or unknown user
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise AuthenticationError("Missing Authorization (Bearer token)")

    user_id = decode_token(auth_header[7:], services.settings.AUTH_SECRET_KEY, now=services.clock.now())
    user = services.users.get_user(user_id)
    if user is None:
        raise AuthenticationError("Unknown user")
    request.state.user_id = user.id
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionError("Admin role required")
    return user


def require_service_available(
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
) -> User:
    """Block non-admin users while maintenance mode is on."""
    if not user.is_admin and services.site.maintenance_mode():
        raise MaintenanceError("We are currently updating our systems. Please check back later.")
    return user
