"""
aipro/models/user.py

User identity. Role gates administrative operations.
"""

from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict

Role = Literal["user", "admin"]


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: str
    role: Role = "user"
    password_hash: str
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @staticmethod
    def normalize_email(email: str) -> str:
        return (email or "").strip().lower()


class PublicUser(BaseModel):
    """User as exposed over HTTP (no credential)."""
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: str
    role: Role
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
        )
