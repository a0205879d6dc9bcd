"""
Fixed-window rate limiting, per IP for credential endpoints and per user
(or IP) for the rest of the API.
"""

import time
from typing import Callable, Optional, Tuple

from fastapi import Request, Response, status
from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware

from unishare.api.deps import get_client_ip
from unishare.config import get_settings
from unishare.logging_config import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60

# Paths whose POSTs accept credentials or send mail
CREDENTIAL_PREFIXES = ("/auth", "/password")


def _get_user_id_from_jwt(request: Request) -> Optional[str]:
    """Subject of a Bearer token, if it decodes. Full auth runs later."""
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    token = auth[7:].strip()
    if not token:
        return None
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    return payload.get("sub")


class InMemoryRateLimitStore:
    """Fixed-window counters keyed by scope and identifier."""

    def __init__(self):
        self._windows: dict[str, Tuple[int, float]] = {}

    def check_and_incr(self, key: str, limit: int, window_seconds: int = WINDOW_SECONDS) -> bool:
        """Count a hit. False when the key is already at its limit."""
        now = time.monotonic()
        count, start = self._windows.get(key, (0, now))
        if now - start >= window_seconds:
            count, start = 0, now
        if count >= limit:
            return False
        self._windows[key] = (count + 1, start)
        return True

    def cleanup_old(self, max_age_seconds: int = 3600) -> None:
        now = time.monotonic()
        stale = [k for k, (_, start) in self._windows.items() if now - start > max_age_seconds]
        for k in stale:
            del self._windows[k]

    def clear(self) -> None:
        self._windows.clear()


# Single-process store
_store: Optional[InMemoryRateLimitStore] = None


def get_store() -> InMemoryRateLimitStore:
    global _store
    if _store is None:
        _store = InMemoryRateLimitStore()
    return _store


class RateLimitMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.rate_limit_enabled:
            return await call_next(request)

        path = request.url.path or ""
        prefix = settings.api_v1_prefix
        if not path.startswith(prefix):
            return await call_next(request)

        store = get_store()
        store.cleanup_old(max_age_seconds=2 * WINDOW_SECONDS)

        route = path[len(prefix):]
        if request.method == "POST" and route.startswith(CREDENTIAL_PREFIXES):
            key = f"auth:{get_client_ip(request) or 'unknown'}"
            limit = settings.rate_limit_auth_per_minute
        else:
            identifier = _get_user_id_from_jwt(request) or get_client_ip(request) or "unknown"
            key = f"api:{identifier}"
            limit = settings.rate_limit_api_per_minute

        if not store.check_and_incr(key, limit):
            logger.warning("Rate limit exceeded", extra={"key": key, "path": path})
            return Response(
                content='{"detail":"Too many requests. Please try again later."}',
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                media_type="application/json",
            )
        return await call_next(request)
