"""
User domain service.
- register(): create user + grant the free plan
- authenticate()
- seed_admin()
- role / credential updates
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

import bcrypt

from aipro.core.clock import Clock, normalize_now
from aipro.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from aipro.core.store import USERS, RecordStore
from aipro.features.plans.service import PlanCatalog
from aipro.features.subscriptions.service import SubscriptionLedger, build_subscription
from aipro.models.user import Role, User

logger = logging.getLogger(__name__)

# Free plan granted at registration runs for ten years
REGISTRATION_GRANT_DAYS = 3650
MIN_PASSWORD_LENGTH = 6
BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed stored hash
        return False


class UserDirectory:
    def __init__(self, store: RecordStore, catalog: PlanCatalog, ledger: SubscriptionLedger, clock: Clock):
        self.store = store
        self.catalog = catalog
        self.ledger = ledger
        self.clock = clock

    def _all(self) -> List[User]:
        return [User.model_validate(row) for row in self.store.get(USERS, [])]

    def list_users(self) -> List[User]:
        return self._all()

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self._all():
            if user.id == user_id:
                return user
        return None

    def require_user(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        wanted = User.normalize_email(email)
        for user in self._all():
            if user.email == wanted:
                return user
        return None

    def seed_admin(self, email: str, password: str, username: str = "Admin") -> Optional[User]:
        """Create the admin account when no users exist yet (idempotent)."""
        with self.store.locked(USERS):
            rows = self.store.get(USERS, [])
            if rows:
                return None
            admin = User(
                id="admin-1",
                username=username,
                email=User.normalize_email(email),
                role="admin",
                password_hash=hash_password(password),
                created_at=normalize_now(self.clock.now()),
            )
            self.store.put(USERS, [admin.model_dump(mode="json")])
        logger.info("[users] admin seeded", extra={"user_id": admin.id})
        return admin

    def register(self, username: str, email: str, password: str, now: Optional[datetime] = None) -> User:
        """
        Create a user and grant the zero-price plan.

        Raises:
            ValidationError: Missing username/email or short password
            ConflictError: Email already registered
        """
        username = (username or "").strip()
        normalized = User.normalize_email(email)
        if not username:
            raise ValidationError("Username is required")
        if "@" not in normalized:
            raise ValidationError("A valid email is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        created_at = normalize_now(now or self.clock.now())
        user = User(
            id=str(uuid4()),
            username=username,
            email=normalized,
            role="user",
            password_hash=hash_password(password),
            created_at=created_at,
        )

        with self.store.locked(USERS):
            rows = self.store.get(USERS, [])
            if any(row["email"] == normalized for row in rows):
                raise ConflictError("Email already exists")
            rows.append(user.model_dump(mode="json"))
            self.store.put(USERS, rows)

        free_plan = self.catalog.free_plan()
        if free_plan is None:
            logger.warning("[users] no free plan in catalog, user has no subscription", extra={"user_id": user.id})
        else:
            self.ledger.activate(build_subscription(user.id, free_plan.id, created_at, REGISTRATION_GRANT_DAYS))

        logger.info("[users] registered", extra={"user_id": user.id})
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.find_by_email(email)
        if user is None or not verify_password(password or "", user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return user

    def _replace(self, user_id: str, **changes) -> User:
        with self.store.locked(USERS):
            rows = self.store.get(USERS, [])
            for index, row in enumerate(rows):
                if row["id"] == user_id:
                    updated = User.model_validate(row).model_copy(update=changes)
                    rows[index] = updated.model_dump(mode="json")
                    self.store.put(USERS, rows)
                    return updated
        raise NotFoundError(f"User {user_id} not found")

    def update_role(self, user_id: str, role: Role) -> User:
        if role not in ("user", "admin"):
            raise ValidationError(f"Unknown role: {role}")
        user = self._replace(user_id, role=role)
        logger.info("[users] role updated", extra={"user_id": user_id, "role": role})
        return user

    def change_password(self, user_id: str, password: str) -> User:
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return self._replace(user_id, password_hash=hash_password(password))
