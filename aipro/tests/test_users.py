from datetime import timedelta

import pytest

from aipro.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from aipro.features.plans.service import PlanCatalog
from aipro.features.subscriptions.service import SubscriptionLedger
from aipro.features.users.service import (
    REGISTRATION_GRANT_DAYS,
    UserDirectory,
    hash_password,
    verify_password,
)


@pytest.fixture
def directory(store, clock):
    catalog = PlanCatalog(store)
    ledger = SubscriptionLedger(store)
    return UserDirectory(store, catalog, ledger, clock), ledger, catalog


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_register_grants_free_plan(directory, clock):
    users, ledger, _ = directory
    user = users.register("alice", "Alice@Example.com ", "secret123")

    assert user.email == "alice@example.com"
    assert user.role == "user"
    sub = ledger.active_subscription_for(user.id)
    assert sub.plan_id == "free"
    assert sub.expires_at == clock.now() + timedelta(days=REGISTRATION_GRANT_DAYS)


def test_register_rejects_duplicate_email_case_insensitive(directory):
    users, _, _ = directory
    users.register("alice", "alice@example.com", "secret123")
    with pytest.raises(ConflictError) as exc:
        users.register("alice2", "ALICE@example.com", "secret456")
    assert exc.value.message == "Email already exists"
    assert len(users.list_users()) == 1


@pytest.mark.parametrize(
    "username,email,password",
    [
        ("", "a@example.com", "secret123"),
        ("alice", "not-an-email", "secret123"),
        ("alice", "a@example.com", "short"),
    ],
)
def test_register_validation(directory, username, email, password):
    users, _, _ = directory
    with pytest.raises(ValidationError):
        users.register(username, email, password)


def test_register_without_free_plan_leaves_user_unsubscribed(directory):
    users, ledger, catalog = directory
    catalog.delete_plan("free")

    user = users.register("alice", "alice@example.com", "secret123")

    assert users.get_user(user.id) is not None
    assert ledger.active_subscription_for(user.id) is None


def test_authenticate(directory):
    users, _, _ = directory
    user = users.register("alice", "alice@example.com", "secret123")

    assert users.authenticate("ALICE@example.com", "secret123").id == user.id
    with pytest.raises(AuthenticationError):
        users.authenticate("alice@example.com", "wrong-pass")
    with pytest.raises(AuthenticationError):
        users.authenticate("nobody@example.com", "secret123")


def test_seed_admin_only_on_empty_directory(directory):
    users, _, _ = directory
    admin = users.seed_admin("admin@example.com", "admin123")
    assert admin.id == "admin-1"
    assert admin.is_admin

    assert users.seed_admin("other@example.com", "admin456") is None
    assert [u.email for u in users.list_users()] == ["admin@example.com"]


def test_update_role_and_password(directory):
    users, _, _ = directory
    user = users.register("alice", "alice@example.com", "secret123")

    assert users.update_role(user.id, "admin").is_admin
    users.change_password(user.id, "new-secret")
    assert users.authenticate("alice@example.com", "new-secret").id == user.id

    with pytest.raises(ValidationError):
        users.update_role(user.id, "owner")
    with pytest.raises(NotFoundError):
        users.update_role("missing", "user")
