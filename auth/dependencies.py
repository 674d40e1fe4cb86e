"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and roles.

All three helpers go through the RequestAuthenticator stored on app.state by
the lifespan, so header and cookie tokens are handled identically.

try_get_identity() is the soft variant (returns the AuthOutcome, never raises).
get_current_identity() wraps it and raises HTTP 401 if unauthenticated.
require_role(role) builds a dependency that also raises HTTP 403 when the
caller's role does not reach the threshold.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request

from auth.authenticator import RequestAuthenticator
from auth.guard import is_at_least
from auth.models import AuthOutcome, Identity, UserRole


def try_get_identity(request: Request) -> AuthOutcome:
    """Authenticate the request. Never raises."""
    authenticator: RequestAuthenticator = request.app.state.authenticator
    return authenticator.authenticate(request)


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    outcome = try_get_identity(request)
    if not outcome.authenticated or outcome.identity is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": outcome.reason or "Authentication required."},
        )
    return outcome.identity


def require_role(required: UserRole) -> Callable[[Request], Identity]:
    """Return a dependency that admits callers at or above `required`.

    Use as a FastAPI dependency:
        @router.get("/users/{user_id}")
        def route(identity: Identity = Depends(require_role(UserRole.MANAGER))): ...
    """

    def dependency(request: Request) -> Identity:
        identity = get_current_identity(request)
        if not is_at_least(identity.role, required):
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": f"{required.name.title()} access required."},
            )
        return identity

    return dependency
