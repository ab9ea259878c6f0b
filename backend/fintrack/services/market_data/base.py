# backend/fintrack/services/market_data/base.py
"""
Base class for upstream market data sources.

Every source that talks to the network (ECB reference rates, Yahoo FX
pairs, Yahoo asset quotes) runs its fetch through _execute_with_retry, so
transient failures share one tenacity policy:

    - Retries only the exception types in RETRYABLE_ERRORS
    - Exponential backoff: 0.5s -> 1s -> 2s (capped at 4s)
    - Maximum 3 attempts, then the last exception is re-raised

Retry attributes are class attributes so a subclass (or a single instance,
as the tests do) can tune them without touching the policy itself.
"""

import logging
import math
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, TypeVar

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from fintrack.services.constants import (
    SOURCE_MAX_RETRY_ATTEMPTS,
    SOURCE_RETRY_MAX_WAIT,
    SOURCE_RETRY_MIN_WAIT,
    SOURCE_RETRY_MULTIPLIER,
)
from fintrack.services.exceptions import ProviderUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def to_decimal(value: Any) -> Decimal | None:
    """Convert a number or numeric string to Decimal, None for NaN/garbage."""
    if value is None:
        return None
    try:
        if isinstance(value, float) and math.isnan(value):
            return None
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None


class MarketDataSource(ABC):
    """
    Abstract upstream source with retry on transient failures.

    Subclasses implement the fetch and call _execute_with_retry around it.
    """

    MAX_RETRY_ATTEMPTS: int = SOURCE_MAX_RETRY_ATTEMPTS
    RETRY_MULTIPLIER: float = SOURCE_RETRY_MULTIPLIER
    RETRY_MIN_WAIT: float = SOURCE_RETRY_MIN_WAIT
    RETRY_MAX_WAIT: float = SOURCE_RETRY_MAX_WAIT
    RETRYABLE_ERRORS: tuple[type[Exception], ...] = (ProviderUnavailableError,)

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs and errors."""
        ...

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Uses exponential backoff for RETRYABLE_ERRORS. Does NOT retry
        other exceptions.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type(self.RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()
