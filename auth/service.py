"""
auth/service.py -- Authentication use case: registration, login, lookup.

AuthService is the transaction boundary for register/login and account
changes (password change, deletion). It combines the
user store, the bcrypt credential verifier and the token service, and is
built once at process entry (see api/main.py lifespan) with its collaborators
passed in -- there is no global container.

Invariants:
  - register() and login() only ever return PublicUser, never a User with a
    password hash.
  - login() fails with the same InvalidCredentials for an unknown username
    and a wrong password, and runs bcrypt in both cases (timing
    equalization), so neither the message nor the response time reveals
    whether the account exists.
  - A duplicate registration fails before a token is issued.
  - Store failures (StoreUnavailable) propagate unchanged. Nothing retries.
"""

from __future__ import annotations

import logging

from auth.errors import DuplicateUsername, InvalidCredentials, SelfDeletion, UserNotFound
from auth.interfaces import UserRepository
from auth.models import AuthResult, Identity, LoginInput, NewUser, RegisterInput, User, UserRole
from auth.passwords import DEFAULT_ROUNDS, hash_password, verify_password
from auth.tokens import TokenService

logger = logging.getLogger("todoapp.auth.service")


class AuthService:
    """Registration and login orchestration.

    Usage:
        service = AuthService(UserStore(db_url), TokenService(secret_key))
        result = service.register(RegisterInput(username="bob", password="secret123"))
        result.token, result.user.username
    """

    def __init__(
        self,
        store: UserRepository,
        tokens: TokenService,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._bcrypt_rounds = bcrypt_rounds
        # Same cost factor as real hashes so the unknown-user path takes as
        # long as the wrong-password path.
        self._dummy_hash = hash_password("todoapp_timing_dummy", rounds=bcrypt_rounds)

    def register(self, data: RegisterInput) -> AuthResult:
        """Create an account and sign the new user in.

        Raises DuplicateUsername if an active user already has the username,
        ValueError if the role is not a UserRole value.
        """
        role = UserRole.parse(data.role)
        if role is None:
            raise ValueError(f"Unknown role: {data.role!r}")

        if self._store.find_by_username(data.username) is not None:
            logger.info("Registration rejected: username %r already exists", data.username)
            raise DuplicateUsername()

        user = self._store.create(
            NewUser(
                username=data.username,
                password_hash=hash_password(data.password, rounds=self._bcrypt_rounds),
                role=role,
                first_name=data.first_name,
                first_name_ruby=data.first_name_ruby,
                last_name=data.last_name,
                last_name_ruby=data.last_name_ruby,
            )
        )
        token = self._tokens.issue(Identity.for_user(user))
        logger.info("Registered user %s (%s)", user.id, user.username)
        return AuthResult(user=user.to_public(), token=token)

    def login(self, data: LoginInput) -> AuthResult:
        """Verify username/password and issue a fresh token.

        Raises InvalidCredentials for an unknown (or soft-deleted) username
        and for a wrong password alike.
        """
        user = self._store.find_by_username(data.username)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            verify_password(data.password, self._dummy_hash)
            logger.info("Login failed for %r", data.username)
            raise InvalidCredentials()
        if not verify_password(data.password, user.password_hash):
            logger.info("Login failed for %r", data.username)
            raise InvalidCredentials()

        token = self._tokens.issue(Identity.for_user(user))
        logger.info("User %s logged in", user.id)
        return AuthResult(user=user.to_public(), token=token)

    def get_by_id(self, user_id: str) -> User | None:
        """Trusted internal lookup. The result is NOT redacted.

        Callers at the API boundary must call .to_public() before exposing it.
        """
        return self._store.find_by_id(user_id)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """Replace a user's password after re-checking the current one.

        Raises UserNotFound if the account no longer exists and
        InvalidCredentials if current_password is wrong. Tokens issued before
        the change stay valid until they expire.
        """
        user = self._store.find_by_id(user_id)
        if user is None:
            raise UserNotFound()
        if not verify_password(current_password, user.password_hash):
            logger.info("Password change rejected for %s: current password mismatch", user_id)
            raise InvalidCredentials()

        new_hash = hash_password(new_password, rounds=self._bcrypt_rounds)
        if not self._store.update_password(user_id, new_hash, updated_by=user_id):
            # Deleted between the lookup and the update.
            raise UserNotFound()
        logger.info("Password changed for %s", user_id)

    def delete_user(self, user_id: str, deleted_by: str) -> None:
        """Soft-delete user_id on behalf of deleted_by.

        The caller's role is checked at the API boundary. Raises SelfDeletion
        if the two ids match and UserNotFound if no active user has user_id.
        The deleted account can no longer log in; tokens it already holds
        still verify until they expire, but /auth/me rejects them.
        """
        if user_id == deleted_by:
            raise SelfDeletion()
        if not self._store.soft_delete(user_id, deleted_by=deleted_by):
            raise UserNotFound()
        logger.info("User %s deleted by %s", user_id, deleted_by)
