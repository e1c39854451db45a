"""Per-IP request throttling using slowapi.

A coarse abuse guard in front of the public auth routes. It is separate
from LoginRateLimiter, which limits login links per email address and is
backed by the login_tokens table. This limiter keys on the client
address and keeps its counters in process memory.

Usage in routers:
    @router.post("/request")
    @limiter.limit(lambda: settings.rate_limit_login_request)
    async def request_login(request: Request, ...):
        ...
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from rizon.core.config import settings
from rizon.core.responses import error_envelope

_FALLBACK_RETRY_AFTER = 60

# Single-instance deployment; multi-instance needs RATELIMIT_STORAGE_URL
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
)


def _retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Length of the exceeded limit's window, e.g. 3600 for "20/hour"."""
    try:
        return int(exc.limit.limit.get_expiry())
    except (AttributeError, TypeError, ValueError):
        return _FALLBACK_RETRY_AFTER


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Render slowapi's RateLimitExceeded as a 429 RATE_LIMITED envelope.

    Args:
        request: The incoming request.
        exc: The rate limit exception.

    Returns:
        JSONResponse with 429 status and a Retry-After header.
    """
    return JSONResponse(
        status_code=429,
        content=error_envelope(
            "RATE_LIMITED", f"Too many requests from this address: {exc.detail}"
        ),
        headers={"Retry-After": str(_retry_after_seconds(exc))},
    )
