"""
auth/tokens.py -- Token service: issue, verify, and extract signed identity tokens.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (subject id), username, role,
       iat, exp and a random jti. They are self-contained -- there is no
       server-side session store -- and are never refreshed: after 24 hours
       the caller must log in again.

  Verification returns None on any failure (malformed, bad signature,
       expired, missing claims). The reasons are indistinguishable to the
       caller so a client cannot tell why a token was rejected; the specific
       reason is logged server-side only.

  Signature encoding is checked for canonical base64url. HS256 signatures are
       32 bytes, so the last base64url character carries two unused bits;
       without this check, flipping those bits would yield a different token
       string that still verifies.

  Expiry is checked against an injectable clock rather than jose's built-in
       wall-clock check, so tests can mint already-expired tokens.

  SECRET_KEY: passed to the TokenService constructor. The service never reads
       configuration itself; the FastAPI lifespan builds one instance at startup.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.models import Identity, UserRole

logger = logging.getLogger("todoapp.auth.tokens")

ALGORITHM = "HS256"
DEFAULT_EXPIRE_SECONDS = 24 * 60 * 60
BEARER_PREFIX = "Bearer "


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenInvalid(Exception):
    """Internal: why a token was rejected. Never escapes verify()."""


class TokenService:
    """Issues and verifies HS256 identity tokens for a single secret key.

    Usage:
        tokens = TokenService(secret_key=settings.secret_key)
        token = tokens.issue(Identity(subject_id="u-1", username="alice", role=UserRole.USER))
        identity = tokens.verify(token)  # Identity or None
    """

    def __init__(
        self,
        secret_key: str,
        expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key.")
        if expire_seconds <= 0:
            raise ValueError("expire_seconds must be positive.")
        self._secret_key = secret_key
        self._expire_seconds = expire_seconds
        self._clock = clock

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, identity: Identity) -> str:
        """Encode a signed token for identity, valid for expire_seconds from now.

        Raises ValueError if subject_id or username is empty or role is not a
        UserRole value.
        """
        if not identity.subject_id:
            raise ValueError("subject_id is required.")
        if not identity.username:
            raise ValueError("username is required.")
        role = UserRole.parse(identity.role)
        if role is None:
            raise ValueError(f"Unknown role: {identity.role!r}")

        issued_at = self._clock()
        payload = {
            "sub": str(identity.subject_id),
            "username": identity.username,
            "role": int(role),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + timedelta(seconds=self._expire_seconds)).timestamp()),
            # iat/exp are whole seconds; jti keeps two tokens minted in the same
            # second distinct.
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: str) -> Identity | None:
        """Return the Identity encoded in token, or None if it is not acceptable."""
        try:
            return self._decode(token)
        except TokenInvalid as exc:
            logger.info("Token rejected: %s", exc)
            return None

    def _decode(self, token: str) -> Identity:
        if not isinstance(token, str) or not token:
            raise TokenInvalid("empty token")

        segments = token.split(".")
        if len(segments) != 3:
            raise TokenInvalid("malformed token")
        _check_canonical_signature(segments[2])

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                # exp is checked below against the injected clock.
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise TokenInvalid(f"signature or format check failed ({exc})") from exc

        subject_id = payload.get("sub")
        username = payload.get("username")
        role = payload.get("role")
        exp = payload.get("exp")
        iat = payload.get("iat")
        if not isinstance(subject_id, str) or not subject_id:
            raise TokenInvalid("missing sub claim")
        if not isinstance(username, str) or not username:
            raise TokenInvalid("missing username claim")
        if isinstance(role, bool) or not isinstance(role, int):
            raise TokenInvalid("missing role claim")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenInvalid("missing exp claim")

        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        if expires_at <= self._clock():
            raise TokenInvalid(f"expired at {expires_at.isoformat()}")

        issued_at = None
        if isinstance(iat, (int, float)) and not isinstance(iat, bool):
            issued_at = datetime.fromtimestamp(iat, tz=timezone.utc)

        # role is passed through as-is; the authorization guard denies values
        # outside UserRole.
        return Identity(
            subject_id=subject_id,
            username=username,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    # ------------------------------------------------------------------
    # Header extraction
    # ------------------------------------------------------------------

    @staticmethod
    def extract_from_header(header_value: str | None) -> str | None:
        """Return the token from an `Authorization: Bearer <token>` value.

        The prefix is case-sensitive. Missing, empty, or other-scheme values
        return None. "Bearer " with nothing after it returns "" -- callers pass
        that on to verify(), which rejects it as an invalid token rather than
        a missing one.
        """
        if not header_value or not header_value.startswith(BEARER_PREFIX):
            return None
        return header_value[len(BEARER_PREFIX) :]


def _check_canonical_signature(segment: str) -> None:
    try:
        raw = base64url_decode(segment.encode("ascii"))
    except (UnicodeEncodeError, ValueError, TypeError) as exc:
        raise TokenInvalid("signature segment is not base64url") from exc
    if base64url_encode(raw).decode("ascii") != segment:
        raise TokenInvalid("signature segment is not canonically encoded")
