"""Unit tests for core/config.py -- SECRET_KEY and bcrypt cost policy.

Settings are built directly with _env_file=None so a developer's .env file
cannot leak into the results.
"""

import pytest
from pydantic import ValidationError

from core.config import Settings

GOOD_KEY = "k" * 32


def test_production_without_secret_key_refuses_to_start(monkeypatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, debug=False)


def test_debug_without_secret_key_generates_one(monkeypatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    settings = Settings(_env_file=None, debug=True)
    assert len(settings.secret_key) >= 32
    assert Settings(_env_file=None, debug=True).secret_key != settings.secret_key


def test_short_secret_key_is_rejected() -> None:
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None, debug=True, secret_key="too-short")


def test_secret_key_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SECRET_KEY", GOOD_KEY)
    monkeypatch.setenv("DEBUG", "false")
    settings = Settings(_env_file=None)
    assert settings.secret_key == GOOD_KEY
    assert settings.debug is False


def test_defaults() -> None:
    settings = Settings(_env_file=None, secret_key=GOOD_KEY)
    assert settings.token_expire_seconds == 24 * 60 * 60
    assert settings.auth_cookie_name == "auth_token"
    assert settings.user_cookie_name == "auth_user"
    assert settings.bcrypt_rounds == 12


@pytest.mark.parametrize("rounds", [3, 32])
def test_bcrypt_rounds_out_of_range(rounds: int) -> None:
    with pytest.raises(ValidationError, match="BCRYPT_ROUNDS"):
        Settings(_env_file=None, secret_key=GOOD_KEY, bcrypt_rounds=rounds)
