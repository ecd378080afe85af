"""
Rate Limiting for the OpsFinder API
===================================
Implements rate limiting using slowapi with in-memory storage.

Limits:
- /auth/login: LOGIN_RATE_LIMIT per IP (default 5/minute, brute force protection)
- /tech-messages/search and /match: RATE_LIMIT_PER_MINUTE per user

Set RATE_LIMIT_ENABLED=false to disable (tests do this).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key for a request.

    Priority:
    1. Authenticated user ID (set on request.state by the auth dependency)
    2. IP address (for anonymous users)
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.

    Returns a JSON response with a Retry-After header.
    """
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail),
            "retry_after_seconds": 60,
        },
        headers={"Retry-After": "60"}
    )


def auth_rate_limit():
    """Rate limit for credential endpoints (LOGIN_RATE_LIMIT)"""
    return limiter.limit(settings.LOGIN_RATE_LIMIT, key_func=get_remote_address)


def search_rate_limit():
    """Rate limit for search endpoints (RATE_LIMIT_PER_MINUTE per user)"""
    return limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
