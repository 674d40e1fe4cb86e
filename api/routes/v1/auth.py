"""
api/routes/v1/auth.py -- Registration, login and session endpoints.

Routes:
  POST /api/v1/auth/register      -- create account; sets session cookies; 201
  POST /api/v1/auth/login         -- password login; sets session cookies
  POST /api/v1/auth/logout        -- clears session cookies; 200
  GET  /api/v1/auth/me            -- current user (requires auth)
  PUT  /api/v1/auth/me/password   -- change own password (requires auth)

Security:
  register and login are rate-limited per client IP (LOGIN_RATE_LIMIT).
  @router.post must sit above @limiter.limit: the router registers whatever
  it decorates, and only the limiter wrapper enforces the per-route limit.
  AuthService.login() gives the same InvalidCredentials for unknown users and
  wrong passwords and equalizes timing -- never inline the lookup here.
  Cache-Control: no-store on every response that carries a token.
  AuthError subclasses raised here are rendered by the handler in api/main.py.

Handlers are plain `def` so FastAPI runs bcrypt and store I/O in its
threadpool instead of on the event loop.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.cookies import delete_auth_cookies, set_auth_cookies
from api.limiter import limiter, login_rate_limit
from api.models import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from auth.dependencies import get_current_identity
from auth.models import AuthResult, Identity, LoginInput, RegisterInput
from auth.service import AuthService
from core.config import Settings

# Auth policy:
# - POST /api/v1/auth/register:     public -- self-registration
# - POST /api/v1/auth/login:        public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/logout:       public -- clearing a cookie needs no prior auth
# - GET  /api/v1/auth/me:           requires auth (get_current_identity)
# - PUT  /api/v1/auth/me/password:  requires auth (get_current_identity)
router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit(login_rate_limit)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a USER account and sign it in.

    409 if the username is taken by an active account.
    """
    service: AuthService = request.app.state.auth_service
    result = service.register(
        RegisterInput(
            username=body.username,
            password=body.password,
            first_name=body.first_name,
            first_name_ruby=body.first_name_ruby,
            last_name=body.last_name,
            last_name_ruby=body.last_name_ruby,
        )
    )
    return _session_response(result, request.app.state.settings, status_code=201)


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; set the session cookies.

    401 bad_credentials for both an unknown username and a wrong password.
    """
    service: AuthService = request.app.state.auth_service
    result = service.login(LoginInput(username=body.username, password=body.password))
    return _session_response(result, request.app.state.settings, status_code=200)


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(request: Request) -> JSONResponse:
    """Clear the session cookies. Tokens are stateless, so nothing is revoked server-side."""
    resp = JSONResponse(content=MessageResponse(message="Logged out.").model_dump())
    delete_auth_cookies(resp, request.app.state.settings)
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, identity: Identity = Depends(get_current_identity)) -> UserResponse:
    """Return the stored profile of the authenticated user.

    The token may outlive the account (soft delete); that case is a 401.
    """
    service: AuthService = request.app.state.auth_service
    user = service.get_by_id(identity.subject_id)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "User not found."},
        )
    return UserResponse.from_public(user.to_public())


@router.put("/auth/me/password", response_model=MessageResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    identity: Identity = Depends(get_current_identity),
) -> MessageResponse:
    """Change the caller's password after checking the current one."""
    service: AuthService = request.app.state.auth_service
    service.change_password(identity.subject_id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session_response(result: AuthResult, settings: Settings, status_code: int) -> JSONResponse:
    user = UserResponse.from_public(result.user)
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            user=user,
            token=result.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=settings.token_expire_seconds,
        ).model_dump(),
    )
    set_auth_cookies(resp, result.token, user, settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp
