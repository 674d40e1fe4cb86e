"""
auth/authenticator.py -- Turns an incoming request into an AuthOutcome.

Token sources, in priority order:
  1. Authorization: Bearer <token> header -- API clients.
  2. The auth cookie (default "auth_token") -- set by the login/register
     routes for browser sessions.

The cookie is only consulted when the header yields no token at all. A
header of exactly "Bearer " yields the empty string, which is verified (and
rejected) as an invalid token instead of falling back to the cookie.

authenticate() sits directly on the request boundary and never raises: any
unexpected error is logged with a traceback and reported as a generic
"Authentication failed" outcome.
"""

from __future__ import annotations

import logging
from typing import Any

from auth.models import AuthOutcome
from auth.tokens import TokenService

logger = logging.getLogger("todoapp.auth.authenticator")

NO_TOKEN = "No token provided"
INVALID_TOKEN = "Invalid token"
AUTHENTICATION_FAILED = "Authentication failed"


class RequestAuthenticator:
    def __init__(self, tokens: TokenService, cookie_name: str = "auth_token") -> None:
        self._tokens = tokens
        self._cookie_name = cookie_name

    def authenticate(self, request: Any) -> AuthOutcome:
        """Authenticate a Starlette-style request (headers.get / cookies.get)."""
        try:
            token = self._tokens.extract_from_header(request.headers.get("Authorization"))
            if token is None:
                token = request.cookies.get(self._cookie_name) or None

            if token is None:
                return AuthOutcome.failed(NO_TOKEN)

            identity = self._tokens.verify(token)
            if identity is None:
                return AuthOutcome.failed(INVALID_TOKEN)
            return AuthOutcome.ok(identity)
        except Exception:
            logger.exception("Unexpected error while authenticating request")
            return AuthOutcome.failed(AUTHENTICATION_FAILED)
