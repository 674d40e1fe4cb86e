"""
core/config.py -- Settings for the todo auth service, read once per process.

All environment variable reads for the todo service happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Cached loader via lru_cache: get_settings() instantiates Settings once at
      first call. Only api/ (app setup, the lifespan, the rate-limit provider)
      and tests call it; auth/ components such as TokenService receive the
      values they need as constructor arguments.

  BaseSettings (pydantic-settings): each field is filled from the env var of
      the same name in upper case (token_expire_seconds <- TOKEN_EXPIRE_SECONDS),
      falling back to .env and then to the default below.

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. Implements the DEBUG-conditional SECRET_KEY rule: dev mode
      generates a key with a warning, production mode refuses to start.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT HS256 signing
  relies on key entropy -- a short key makes offline brute-force practical.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("todoapp.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'todoapp_users.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields except SECRET_KEY have defaults so Settings() can be
    instantiated in test environments (with DEBUG=true) without a real .env.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Tokens live 24 hours and are never refreshed; re-login after expiry.
    token_expire_seconds: int = 24 * 60 * 60
    auth_cookie_name: str = "auth_token"
    user_cookie_name: str = "auth_user"
    secure_cookies: bool = False
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive a restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing. This is a startup failure, never a
            per-request one.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Issued tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required when DEBUG is off. "
                    "Set it in the environment or .env, or set DEBUG=true for local development."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance.

    Instantiated once at first call. In tests: call get_settings.cache_clear()
    between test cases if you need to inject different environment variables.
    """
    return Settings()
