"""
tests/conftest.py -- Shared test fixtures for the todo auth core.

This module provides:
  - InMemoryUserRepository: a dict-backed UserRepository for unit tests
  - tokens / repo / service: unit-level fixtures with a fixed secret and a low
    bcrypt cost so hashing stays fast
  - api_client: TestClient over the real FastAPI app with a patched lifespan
    and an isolated named shared-memory SQLite store

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import replace

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.authenticator import RequestAuthenticator
from auth.errors import DuplicateUsername
from auth.models import NewUser, User
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"
TEST_BCRYPT_ROUNDS = 4


# ---------------------------------------------------------------------------
# In-memory repository
# ---------------------------------------------------------------------------


class InMemoryUserRepository:
    """Dict-backed UserRepository. Soft-deleted users are invisible to lookups."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    def find_by_username(self, username: str) -> User | None:
        for user in self.users.values():
            if user.username == username and not user.deleted:
                return user
        return None

    def find_by_id(self, user_id: str) -> User | None:
        user = self.users.get(user_id)
        if user is None or user.deleted:
            return None
        return user

    def create(self, new_user: NewUser) -> User:
        # Independent of find_by_username, like the SQL unique index.
        if any(u.username == new_user.username and not u.deleted for u in self.users.values()):
            raise DuplicateUsername()
        user = User(
            id=str(uuid.uuid4()),
            username=new_user.username,
            password_hash=new_user.password_hash,
            role=new_user.role,
            first_name=new_user.first_name,
            first_name_ruby=new_user.first_name_ruby,
            last_name=new_user.last_name,
            last_name_ruby=new_user.last_name_ruby,
            created_at="2026-01-01T00:00:00+00:00",
            updated_at="2026-01-01T00:00:00+00:00",
        )
        self.users[user.id] = user
        return user

    def update_password(self, user_id: str, password_hash: str, updated_by: str | None = None) -> bool:
        user = self.find_by_id(user_id)
        if user is None:
            return False
        self.users[user_id] = replace(user, password_hash=password_hash, updated_by=updated_by)
        return True

    def soft_delete(self, user_id: str, deleted_by: str | None = None) -> bool:
        user = self.find_by_id(user_id)
        if user is None:
            return False
        self.users[user_id] = replace(user, deleted=True, updated_by=deleted_by)
        return True


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret_key=TEST_SECRET)


@pytest.fixture
def repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def service(repo: InMemoryUserRepository, tokens: TokenService) -> AuthService:
    return AuthService(repo, tokens, bcrypt_rounds=TEST_BCRYPT_ROUNDS)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and a token service into app.state so TestClient
    routes use an isolated database rather than the configured one.
    """
    settings = get_settings()

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.user_store = user_store
        app.state.auth_service = AuthService(user_store, tokens, bcrypt_rounds=TEST_BCRYPT_ROUNDS)
        app.state.authenticator = RequestAuthenticator(tokens, cookie_name=settings.auth_cookie_name)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_app_client() -> Generator[tuple[TestClient, UserStore, TokenService], None, None]:
    """Yield (client, store, tokens) sharing one in-memory DB per test module.

    Rate limiting is switched off: a module registers and logs in far more
    often than the per-minute limit allows.
    """
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(db_url)
    api_tokens = TokenService(secret_key=TEST_SECRET)

    app.router.lifespan_context = _patch_lifespan(user_store, api_tokens)
    limiter.enabled = False

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=False) as client:
        yield client, user_store, api_tokens

    limiter.enabled = True
    user_store.close()


@pytest.fixture
def api_client(api_app_client) -> tuple[TestClient, UserStore, TokenService]:
    """Per-test view of api_app_client with an empty cookie jar."""
    client, _store, _tokens = api_app_client
    client.cookies.clear()
    return api_app_client
