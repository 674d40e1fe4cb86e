"""Unit tests for auth/passwords.py -- bcrypt hashing and verification.

Covers:
- hash/verify round trip; wrong password is False, not an exception
- hashes are salted (same input, different output)
- the 72-byte bcrypt limit on both sides
- malformed stored hash raises CredentialIntegrityError
"""

import pytest

from auth.errors import CredentialIntegrityError
from auth.passwords import MAX_PASSWORD_BYTES, hash_password, verify_password

ROUNDS = 4


def test_correct_password_verifies() -> None:
    hashed = hash_password("secret123", rounds=ROUNDS)
    assert hashed.startswith("$2")
    assert verify_password("secret123", hashed) is True


def test_wrong_password_is_false() -> None:
    hashed = hash_password("secret123", rounds=ROUNDS)
    assert verify_password("secret124", hashed) is False
    assert verify_password("", hashed) is False


def test_hashes_are_salted() -> None:
    assert hash_password("secret123", rounds=ROUNDS) != hash_password("secret123", rounds=ROUNDS)


def test_cost_factor_is_encoded_in_hash() -> None:
    assert hash_password("secret123", rounds=5).startswith("$2b$05$")


def test_non_ascii_password_round_trips() -> None:
    hashed = hash_password("pässwörd-日本", rounds=ROUNDS)
    assert verify_password("pässwörd-日本", hashed) is True


def test_password_at_byte_limit_is_accepted() -> None:
    plain = "a" * MAX_PASSWORD_BYTES
    assert verify_password(plain, hash_password(plain, rounds=ROUNDS)) is True


def test_password_over_byte_limit_is_rejected_when_hashing() -> None:
    with pytest.raises(ValueError):
        hash_password("a" * (MAX_PASSWORD_BYTES + 1), rounds=ROUNDS)


def test_byte_limit_counts_utf8_bytes_not_characters() -> None:
    # 25 three-byte characters = 75 bytes
    with pytest.raises(ValueError):
        hash_password("日" * 25, rounds=ROUNDS)


def test_password_over_byte_limit_never_verifies() -> None:
    hashed = hash_password("a" * MAX_PASSWORD_BYTES, rounds=ROUNDS)
    assert verify_password("a" * (MAX_PASSWORD_BYTES + 1), hashed) is False


@pytest.mark.parametrize("bad_hash", ["", "not-a-bcrypt-hash", "$2b$04$tooshort"])
def test_malformed_hash_raises_integrity_error(bad_hash: str) -> None:
    with pytest.raises(CredentialIntegrityError):
        verify_password("secret123", bad_hash)
