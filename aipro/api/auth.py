"""
Auth API routes.

- POST /api/auth/register: Create account (grants the free plan)
- POST /api/auth/login: Exchange credentials for a bearer token
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from aipro.core.auth import get_services, issue_token
from aipro.core.container import Services
from aipro.models.user import PublicUser, User

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: PublicUser


def _token_response(user: User, services: Services) -> TokenResponse:
    token = issue_token(
        user,
        services.settings.AUTH_SECRET_KEY,
        services.settings.AUTH_TOKEN_TTL_MINUTES,
        now=services.clock.now(),
    )
    return TokenResponse(access_token=token, user=PublicUser.from_user(user))


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(request: RegisterRequest, services: Services = Depends(get_services)):
    user = services.users.register(request.username, request.email, request.password)
    return _token_response(user, services)


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, services: Services = Depends(get_services)):
    user = services.users.authenticate(request.email, request.password)
    return _token_response(user, services)
