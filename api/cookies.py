"""
api/cookies.py -- Session cookie helpers for the register/login/logout routes.

Two cookies are written on a successful register or login:
  auth_token -- the signed token. httponly so page scripts cannot read it;
                RequestAuthenticator falls back to it when no Bearer header
                is present.
  auth_user  -- JSON of the redacted user, readable by page scripts so the UI
                can render the signed-in user without an extra request. It
                carries no credential and is never trusted server-side.

samesite="lax": sent on same-site navigations, not on cross-site POST.
secure: only over HTTPS when SECURE_COOKIES=true (set in production).
max_age: matches the token lifetime so cookie and token expire together.
"""

from __future__ import annotations

from starlette.responses import Response

from api.models import UserResponse
from core.config import Settings


def set_auth_cookies(response: Response, token: str, user: UserResponse, settings: Settings) -> None:
    response.set_cookie(
        settings.auth_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.token_expire_seconds,
        path="/",
    )
    response.set_cookie(
        settings.user_cookie_name,
        value=user.model_dump_json(),
        httponly=False,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.token_expire_seconds,
        path="/",
    )


def delete_auth_cookies(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.auth_cookie_name, path="/")
    response.delete_cookie(settings.user_cookie_name, path="/")
