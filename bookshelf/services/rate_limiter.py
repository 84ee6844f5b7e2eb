"""
Rate Limiting Service

Implements rate limiting using slowapi to slow down credential stuffing and
signup spam on the authentication endpoints.

Key Features:
=============
1. IP-based rate limiting, aware of proxy headers
2. In-memory storage (per process)
3. Can be switched off with RATE_LIMIT_ENABLED=false (tests, local dev)
4. Errors use the standard error envelope
"""

import logging

from fastapi import Request, status
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from bookshelf.config import Settings, get_settings
from bookshelf.transaction import error_response

logger = logging.getLogger(__name__)
settings = get_settings()

RATE_LIMIT_MESSAGE = "Too many requests. Please slow down."


def get_client_ip(request: Request) -> str:
    """
    Get client IP address for rate limiting.

    Handles common proxy headers to get the real client IP.
    Falls back to direct connection IP if no proxy headers.
    """
    # X-Forwarded-For can contain multiple IPs; first is the client
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # nginx
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter(settings: Settings) -> Limiter:
    """Create and configure the rate limiter."""
    limiter = Limiter(
        key_func=get_client_ip,
        storage_uri="memory://",
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"auth: {settings.rate_limit_auth}"
    )

    return limiter


# Route decorators need the limiter at import time
limiter = create_limiter(settings)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Custom handler for rate limit exceeded errors.

    Returns 429 Too Many Requests with a Retry-After header and the
    standard error envelope.
    """
    limit_detail = str(exc.detail)

    response = error_response(
        RATE_LIMIT_MESSAGE,
        status.HTTP_429_TOO_MANY_REQUESTS,
        headers={
            "Retry-After": str(60),
            "X-RateLimit-Limit": limit_detail,
        },
    )

    logger.warning(
        f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}"
    )

    return response
