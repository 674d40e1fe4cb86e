"""
auth/errors.py -- Typed failures raised by the auth package.

Every business-rule or infrastructure failure that crosses the AuthService
boundary is an AuthError subclass carrying an AuthErrorKind. The API layer
switches on .kind to choose a status code; nothing string-matches messages.

Token problems never appear here: TokenService.verify() returns None and
RequestAuthenticator returns an AuthOutcome, so neither raises to callers.
"""

from __future__ import annotations

from enum import Enum


class AuthErrorKind(str, Enum):
    DUPLICATE_USERNAME = "duplicate_username"
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_NOT_FOUND = "user_not_found"
    STORE_ERROR = "store_error"
    SELF_DELETION = "self_deletion"


class AuthError(Exception):
    """Base class. Subclasses pin kind and a default client-safe message."""

    kind: AuthErrorKind
    default_message: str = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateUsername(AuthError):
    kind = AuthErrorKind.DUPLICATE_USERNAME
    default_message = "Username already exists"


class InvalidCredentials(AuthError):
    """Raised for unknown usernames and wrong passwords alike.

    The message is fixed so the two cases are indistinguishable to clients.
    """

    kind = AuthErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"

    def __init__(self) -> None:
        super().__init__()


class UserNotFound(AuthError):
    kind = AuthErrorKind.USER_NOT_FOUND
    default_message = "User not found"


class SelfDeletion(AuthError):
    """A user tried to delete their own account through the admin path."""

    kind = AuthErrorKind.SELF_DELETION
    default_message = "You cannot delete your own account"


class StoreUnavailable(AuthError):
    """The user store failed (connection refused, locked database, ...)."""

    kind = AuthErrorKind.STORE_ERROR
    default_message = "User store unavailable"


class CredentialIntegrityError(ValueError):
    """A stored password hash is not a well-formed bcrypt hash.

    This is a data-integrity problem, not a login failure, so it is not an
    AuthError and surfaces as a 500.
    """
