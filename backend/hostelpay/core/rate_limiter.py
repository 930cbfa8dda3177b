"""
Rate Limiting for HostelPay API
===============================
Implements rate limiting using slowapi with in-process storage.

Only the admin login endpoint is limited (LOGIN_RATE_LIMIT, default
5/minute per client address) to slow down password guessing.
Set RATE_LIMIT_ENABLED=false to switch limiting off entirely.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from hostelpay.core.config import settings
from hostelpay.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: the client address"""
    return f"ip:{get_remote_address(request)}"


# Create limiter instance
limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.

    Returns the standard error envelope plus a Retry-After header.
    """
    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": "Too many requests. Please slow down.",
                "details": {"limit": str(exc.detail)},
            },
        },
        headers={"Retry-After": "60"},
    )


def auth_rate_limit():
    """Rate limit for the login endpoint"""
    return limiter.limit(settings.LOGIN_RATE_LIMIT, key_func=get_client_identifier)
