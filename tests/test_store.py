"""Unit tests for auth/store.py -- SQLAlchemy user repository.

Covers:
- create() assigns id and timestamps and find_* return the stored record
- the active-username unique index raises DuplicateUsername
- soft_delete() hides a user and frees the username
- update_password() only touches active users
- SQLAlchemy failures surface as StoreUnavailable
"""

import pytest
from sqlalchemy import text

from auth.errors import DuplicateUsername, StoreUnavailable
from auth.models import NewUser, UserRole
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


def _new_user(username: str = "alice", **kwargs) -> NewUser:
    return NewUser(username=username, password_hash="$2b$04$fakehashfakehashfakehashfakehashfakehashfakehashfake", **kwargs)


# ---------------------------------------------------------------------------
# Create / find
# ---------------------------------------------------------------------------


def test_create_and_find(store: UserStore) -> None:
    created = store.create(_new_user(role=UserRole.MANAGER, first_name="Alice", last_name="Liddell"))

    assert len(created.id) == 36
    assert created.created_at is not None
    assert created.created_at == created.updated_at
    assert created.deleted is False

    by_name = store.find_by_username("alice")
    by_id = store.find_by_id(created.id)
    assert by_name == by_id == created
    assert by_name.role == UserRole.MANAGER
    assert by_name.first_name == "Alice"


def test_find_unknown_returns_none(store: UserStore) -> None:
    assert store.find_by_username("nobody") is None
    assert store.find_by_id("00000000-0000-0000-0000-000000000000") is None


def test_username_lookup_is_case_sensitive(store: UserStore) -> None:
    store.create(_new_user("alice"))
    assert store.find_by_username("Alice") is None


def test_ids_are_unique(store: UserStore) -> None:
    a = store.create(_new_user("alice"))
    b = store.create(_new_user("bob"))
    assert a.id != b.id


def test_duplicate_active_username_raises(store: UserStore) -> None:
    store.create(_new_user("alice"))
    with pytest.raises(DuplicateUsername):
        store.create(_new_user("alice"))


# ---------------------------------------------------------------------------
# Soft delete
# ---------------------------------------------------------------------------


def test_soft_deleted_user_is_invisible(store: UserStore) -> None:
    user = store.create(_new_user("alice"))
    assert store.soft_delete(user.id, deleted_by="admin-id") is True

    assert store.find_by_username("alice") is None
    assert store.find_by_id(user.id) is None
    assert store.soft_delete(user.id) is False


def test_soft_deleted_username_can_be_reused(store: UserStore) -> None:
    first = store.create(_new_user("alice"))
    store.soft_delete(first.id)
    second = store.create(_new_user("alice"))
    assert second.id != first.id
    assert store.find_by_username("alice").id == second.id


# ---------------------------------------------------------------------------
# Password update
# ---------------------------------------------------------------------------


def test_update_password(store: UserStore) -> None:
    user = store.create(_new_user("alice"))
    assert store.update_password(user.id, "$2b$04$newhash", updated_by=user.id) is True

    updated = store.find_by_id(user.id)
    assert updated.password_hash == "$2b$04$newhash"
    assert updated.updated_by == user.id


def test_update_password_of_deleted_user(store: UserStore) -> None:
    user = store.create(_new_user("alice"))
    store.soft_delete(user.id)
    assert store.update_password(user.id, "$2b$04$newhash") is False


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_query_failure_becomes_store_unavailable(store: UserStore) -> None:
    with store.engine.connect() as conn:
        conn.execute(text("DROP TABLE users"))
        conn.commit()

    with pytest.raises(StoreUnavailable):
        store.find_by_username("alice")
    with pytest.raises(StoreUnavailable):
        store.create(_new_user("alice"))
