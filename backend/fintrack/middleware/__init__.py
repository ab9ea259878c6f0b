# backend/fintrack/middleware/__init__.py
"""
ASGI middleware for FinTrack.

- Correlation ID tracking for request tracing
- Rate limiting (slowapi)

Usage:
    from fintrack.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from fintrack.middleware.correlation import CorrelationIdMiddleware
from fintrack.middleware.rate_limit import (
    RATE_LIMIT_CALIBRATION,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_WRITE,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_CALIBRATION",
    "RATE_LIMIT_HEALTH",
]
