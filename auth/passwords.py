"""
auth/passwords.py -- Credential verifier: bcrypt hashing and verification.

Using bcrypt directly rather than a passlib wrapper: passlib's internal
wrap-bug detection builds a password longer than 72 bytes, which bcrypt 4.x
rejects. Direct usage has no compatibility shim.

bcrypt only looks at the first 72 bytes of a password; newer releases raise
instead of truncating. hash_password() rejects longer input up front so the
behaviour does not depend on the installed bcrypt version, and the API models
cap passwords at the same byte length.

Pure functions, no state. Hashing failures propagate to the caller.
"""

from __future__ import annotations

import bcrypt

from auth.errors import CredentialIntegrityError

MAX_PASSWORD_BYTES = 72
DEFAULT_ROUNDS = 12


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A mismatch is False, never an exception. A hash that bcrypt cannot parse
    raises CredentialIntegrityError: the stored record is corrupt.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        # hash_password() never produced a hash for such input.
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError as exc:
        raise CredentialIntegrityError("Stored password hash is malformed.") from exc

