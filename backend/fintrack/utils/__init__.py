# backend/fintrack/utils/__init__.py
"""
Cross-cutting utilities for FinTrack.

- logging: Logging setup with correlation ID support
- context: Request-scoped correlation ID

Usage:
    from fintrack.utils import setup_logging, get_logger
    from fintrack.utils import get_correlation_id, set_correlation_id
"""

from fintrack.utils.context import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from fintrack.utils.logging import get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
