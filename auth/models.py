"""
auth/models.py -- Domain dataclasses for identity and access-control entities.

Pattern: Data class (pure data containers, next to no logic). Stores and
services do the work; these types only own the domain shape.

Redaction rule: anything handed outward by AuthService is a PublicUser, which
has no password_hash attribute at all. User (with the hash) is for trusted
internal use only.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum


class UserRole(IntEnum):
    """Closed role hierarchy. Lower value = broader privilege."""

    ADMIN = 1
    MANAGER = 2
    USER = 4
    GUEST = 8

    @classmethod
    def parse(cls, value: object) -> UserRole | None:
        """Return the matching role, or None for anything outside the enum.

        bool is rejected explicitly because True == 1 would otherwise map to ADMIN.
        """
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class User:
    """A user record as owned by the persistence layer.

    id is an opaque string assigned by the store (UUID4). Soft-deleted rows
    (deleted=True) are never returned by store lookups, so a User seen by
    AuthService is always active.
    """

    id: str
    username: str
    password_hash: str
    role: int = UserRole.USER
    first_name: str | None = None
    first_name_ruby: str | None = None
    last_name: str | None = None
    last_name_ruby: str | None = None
    created_at: str | None = None
    created_by: str | None = None
    updated_at: str | None = None
    updated_by: str | None = None
    deleted: bool = False

    def to_public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            username=self.username,
            role=self.role,
            first_name=self.first_name,
            first_name_ruby=self.first_name_ruby,
            last_name=self.last_name,
            last_name_ruby=self.last_name_ruby,
            created_at=self.created_at,
            created_by=self.created_by,
            updated_at=self.updated_at,
            updated_by=self.updated_by,
        )


@dataclass
class PublicUser:
    """Outward-facing view of a User. Deliberately has no password_hash field."""

    id: str
    username: str
    role: int
    first_name: str | None = None
    first_name_ruby: str | None = None
    last_name: str | None = None
    last_name_ruby: str | None = None
    created_at: str | None = None
    created_by: str | None = None
    updated_at: str | None = None
    updated_by: str | None = None


@dataclass
class NewUser:
    """Insert payload for UserRepository.create(). The password is already hashed."""

    username: str
    password_hash: str
    role: int = UserRole.USER
    first_name: str | None = None
    first_name_ruby: str | None = None
    last_name: str | None = None
    last_name_ruby: str | None = None
    created_by: str | None = None


@dataclass
class RegisterInput:
    username: str
    password: str
    role: int = UserRole.USER
    first_name: str | None = None
    first_name_ruby: str | None = None
    last_name: str | None = None
    last_name_ruby: str | None = None


@dataclass
class LoginInput:
    username: str
    password: str


@dataclass(frozen=True)
class Identity:
    """The caller identity carried inside a token.

    issued_at / expires_at are populated only when the Identity was decoded
    from a token; they are ignored when issuing.
    """

    subject_id: str
    username: str
    role: int
    issued_at: datetime | None = field(default=None, compare=False)
    expires_at: datetime | None = field(default=None, compare=False)

    @classmethod
    def for_user(cls, user: User) -> Identity:
        return cls(subject_id=user.id, username=user.username, role=user.role)


@dataclass
class AuthResult:
    """Result of a successful register() or login()."""

    user: PublicUser
    token: str


@dataclass(frozen=True)
class AuthOutcome:
    """Per-request authentication outcome. Never persisted.

    Either authenticated=True with an identity, or authenticated=False with a
    reason suitable for returning to the client.
    """

    authenticated: bool
    identity: Identity | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, identity: Identity) -> AuthOutcome:
        return cls(authenticated=True, identity=identity)

    @classmethod
    def failed(cls, reason: str) -> AuthOutcome:
        return cls(authenticated=False, reason=reason)
