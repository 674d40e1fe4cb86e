"""Narrow ports the auth package depends on.

AuthService only needs these methods from a user store, so tests can pass a
plain in-memory fake and production passes auth.store.UserStore.
"""

from __future__ import annotations

from typing import Protocol

from auth.models import NewUser, User


class UserRepository(Protocol):
    """Persistence port for User records.

    Lookups only ever return active (non-deleted) users. Any infrastructure
    failure is raised as auth.errors.StoreUnavailable.
    """

    def find_by_username(self, username: str) -> User | None: ...

    def find_by_id(self, user_id: str) -> User | None: ...

    def create(self, new_user: NewUser) -> User:
        """Insert and return the stored record.

        Raises DuplicateUsername if an active user already has the username.
        """
        ...

    def update_password(self, user_id: str, password_hash: str, updated_by: str | None = None) -> bool: ...

    def soft_delete(self, user_id: str, deleted_by: str | None = None) -> bool:
        """Mark an active user deleted. Returns False if no active user has that id."""
        ...
