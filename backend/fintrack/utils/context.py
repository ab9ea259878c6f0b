# backend/fintrack/utils/context.py
"""
Request-scoped context for log correlation.

Holds the correlation ID of the current request in a contextvar, so every
log line emitted while handling the request can be tied back to it. FX
lookups fan out to worker threads via contextvars.copy_context(), so the
ID follows them there too.

Usage:
    from fintrack.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("abc-123")   # middleware
    get_correlation_id()            # anywhere -> "abc-123"
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """The current request's correlation ID, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current request.

    Called by CorrelationIdMiddleware at the start of each request.
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)
