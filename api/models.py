"""
API request and response models for the todo service auth endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

UserResponse has no password field: it is built from PublicUser, so a hash
cannot leak through serialization even if a route forgets to redact.
"""

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field, model_validator

from auth.models import PublicUser, UserRole
from auth.passwords import MAX_PASSWORD_BYTES

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

USERNAME_MAX = 50
NAME_MAX = 50
PASSWORD_MIN = 6


def _check_password_bytes(value: str) -> str:
    # bcrypt only considers the first 72 bytes; refuse longer input outright.
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


# Annotated type shared by every field that is later passed to hash_password().
_NewPassword = Annotated[str, Field(min_length=PASSWORD_MIN), AfterValidator(_check_password_bytes)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Self-registration always creates a USER account; there is no role field.
    """

    username: str = Field(min_length=1, max_length=USERNAME_MAX)
    password: _NewPassword
    first_name: Optional[str] = Field(default=None, max_length=NAME_MAX)
    first_name_ruby: Optional[str] = Field(default=None, max_length=NAME_MAX)
    last_name: Optional[str] = Field(default=None, max_length=NAME_MAX)
    last_name_ruby: Optional[str] = Field(default=None, max_length=NAME_MAX)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=USERNAME_MAX)
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    """Request body for PUT /api/v1/auth/me/password."""

    current_password: str = Field(min_length=1)
    new_password: _NewPassword
    confirm_password: str = Field(min_length=1)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Outward representation of a user. Never carries the password hash."""

    id: str
    username: str
    role: int
    role_name: Optional[str] = None
    first_name: Optional[str] = None
    first_name_ruby: Optional[str] = None
    last_name: Optional[str] = None
    last_name_ruby: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        role = UserRole.parse(user.role)
        return cls(
            id=user.id,
            username=user.username,
            role=user.role,
            role_name=role.name if role is not None else None,
            first_name=user.first_name,
            first_name_ruby=user.first_name_ruby,
            last_name=user.last_name,
            last_name_ruby=user.last_name_ruby,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(BaseModel):
    """Body of a successful register or login."""

    user: UserResponse
    token: str
    token_type: str = "bearer"
    expires_in: int


class MessageResponse(BaseModel):
    message: str


class DeleteUserResponse(BaseModel):
    deleted: bool = True
    user_id: str


class ErrorDetail(BaseModel):
    """Structured error payload. code is machine-readable, message is for humans."""

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Envelope for every error returned by the API."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response body for GET /api/v1/health."""

    status: str = "healthy"
    version: str
