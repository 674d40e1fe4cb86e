"""
api/main.py -- FastAPI application entry point for the todo service auth core.

Run with:  uvicorn api.main:app --reload

Middleware, in the order a request meets them:
  log_requests           access log line per request
  TrustedHostMiddleware  Host header must match ALLOWED_HOSTS (400 otherwise)
  CORSMiddleware         credentialed CORS for CORS_ORIGINS only
  SlowAPIMiddleware      LOGIN_RATE_LIMIT on register and login

Lifespan is the composition root: it loads Settings once, builds UserStore,
TokenService, AuthService and RequestAuthenticator, and stores them on
app.state. Route dependencies read them from there; nothing in auth/ reaches
for configuration or a global container. A missing SECRET_KEY outside debug
mode fails at import (middleware setup reads Settings), never on a request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.authenticator import RequestAuthenticator
from auth.errors import AuthError, AuthErrorKind
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("todoapp.api")

# AuthErrorKind -> (HTTP status, error code)
_AUTH_ERROR_STATUS: dict[AuthErrorKind, tuple[int, str]] = {
    AuthErrorKind.DUPLICATE_USERNAME: (409, "conflict"),
    AuthErrorKind.INVALID_CREDENTIALS: (401, "bad_credentials"),
    AuthErrorKind.USER_NOT_FOUND: (404, "not_found"),
    AuthErrorKind.STORE_ERROR: (503, "store_unavailable"),
    AuthErrorKind.SELF_DELETION: (403, "forbidden"),
}


# ---------------------------------------------------------------------------
# Lifespan -- composition root
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the auth components once and tear them down on shutdown."""
    settings = get_settings()
    logger.info("Todo auth API starting up")

    tokens = TokenService(secret_key=settings.secret_key, expire_seconds=settings.token_expire_seconds)
    user_store = UserStore(settings.database_url)

    app.state.settings = settings
    app.state.user_store = user_store
    app.state.auth_service = AuthService(user_store, tokens, bcrypt_rounds=settings.bcrypt_rounds)
    app.state.authenticator = RequestAuthenticator(tokens, cookie_name=settings.auth_cookie_name)
    logger.info("Auth initialized (token lifetime %ds)", settings.token_expire_seconds)

    yield

    user_store.close()
    logger.info("Todo auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Todo Auth API",
    description="Registration, login and role-based access control for the todo service.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette wraps each added middleware around the ones added before it, so
# they are added innermost first: SlowAPI, CORS, TrustedHost, then the access
# log, which therefore also sees requests rejected by TrustedHost.
# ---------------------------------------------------------------------------

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

_settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    client = request.client.host if request.client else "-"
    # Path only: query strings are not logged.
    logger.info(
        "%s %s -> %d (%.1fms) from %s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        client,
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body is {"error": {"code", "message", "detail"}}; clients switch
# on error.code, never on the status line.
# ---------------------------------------------------------------------------


def _error_response(
    status_code: int,
    code: str,
    message: str,
    detail: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map typed auth failures to HTTP statuses by kind, never by message text."""
    status_code, code = _AUTH_ERROR_STATUS[exc.kind]
    if exc.kind is AuthErrorKind.STORE_ERROR:
        logger.error("Store failure on %s %s", request.method, request.url.path)
    headers = {"Cache-Control": "no-store"} if exc.kind is AuthErrorKind.INVALID_CREDENTIALS else None
    return _error_response(status_code, code, exc.message, headers=headers)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with Retry-After; slowapi puts the window length on the exception."""
    retry_after = int(getattr(exc, "retry_after", 60))
    return _error_response(
        429,
        "rate_limited",
        "Too many requests.",
        detail=str(exc.detail),
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
    return _error_response(422, "validation_error", "Request validation failed.", detail=fields or None)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Dependencies raise HTTPException with a {"code", "message"} dict as detail."""
    if isinstance(exc.detail, dict):
        return _error_response(exc.status_code, exc.detail["code"], exc.detail["message"], headers=exc.headers)
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Traceback goes to the log only.
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Liveness check. Public and not rate-limited."""
    return HealthResponse(version=VERSION)
