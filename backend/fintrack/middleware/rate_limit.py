# backend/fintrack/middleware/rate_limit.py
"""
Rate limiting for API protection (slowapi).

Limits are defined in fintrack/services/constants.py per endpoint class:
- RATE_LIMIT_DEFAULT: reads (valuations, listings)
- RATE_LIMIT_WRITE: holding and portfolio mutations
- RATE_LIMIT_CALIBRATION: calibration writes (each one values a portfolio
  and may hit the FX providers)
- RATE_LIMIT_PRICE_REFRESH: asset price refresh (one Yahoo quote per asset)
- RATE_LIMIT_HEALTH: probes

Key by: Client IP (X-Forwarded-For only from trusted proxies)
Storage: In-memory (single instance)

Usage:
    from fintrack.middleware.rate_limit import limiter, RATE_LIMIT_WRITE

    @router.post("/holdings")
    @limiter.limit(RATE_LIMIT_WRITE)
    def add_holding(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from fintrack.config import settings
from fintrack.services.constants import (
    RATE_LIMIT_CALIBRATION,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_PRICE_REFRESH,
    RATE_LIMIT_WRITE,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


def _is_trusted_proxy(request: Request) -> bool:
    """True if forwarded headers of this request may be trusted."""
    if settings.trust_proxy_headers:
        return True
    return get_remote_address(request) in settings.trusted_proxy_ips


def _get_client_ip(request: Request) -> str:
    """
    Client IP used as the rate limit key.

    X-Forwarded-For / X-Real-IP are honoured only when the immediate peer
    is a trusted proxy, so clients cannot pick their own bucket.
    """
    if _is_trusted_proxy(request):
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # First entry is the original client
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return get_remote_address(request)


# =============================================================================
# LIMITER INSTANCE
# =============================================================================

limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
)


# =============================================================================
# RATE LIMIT EXCEEDED HANDLER
# =============================================================================

async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard error format, with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(
        f"Rate limit exceeded for {_get_client_ip(request)} on "
        f"{request.method} {request.url.path}: {limit_info}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {
                "retry_after": RETRY_AFTER_SECONDS,
            },
        },
        headers={
            "Retry-After": str(RETRY_AFTER_SECONDS),
        },
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_CALIBRATION",
    "RATE_LIMIT_PRICE_REFRESH",
    "RATE_LIMIT_HEALTH",
]
