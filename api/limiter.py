"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in the auth routes
(to apply per-route limits with @limiter.limit(), placed directly above the
handler and below the @router decorator).

A single shared instance means all routes share the same in-memory counter
store; separate instances per module would each count in isolation and the
limits would never trigger.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def login_rate_limit() -> str:
    """Limit string for register/login, read at request time from Settings."""
    return get_settings().login_rate_limit
