# backend/fintrack/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The API layer (main.py exception handlers) maps them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   ├── PortfolioNotFoundError
    │   ├── AssetNotFoundError
    │   └── HoldingNotFoundError
    ├── CalibrationError
    │   └── CalibrationNotPossibleError
    ├── FXRateError
    │   ├── FXRateNotFoundError
    │   └── FXProviderError
    ├── MarketDataError
    │   └── ProviderUnavailableError
    └── AuthenticationError
        ├── InvalidCredentialsError
        └── TokenExpiredError
"""

from decimal import Decimal


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    This is for programmatic validation errors (negative quantity, non-positive
    adjustment factor, etc.), NOT for request validation which is handled
    by Pydantic.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Portfolio", "Asset")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class PortfolioNotFoundError(NotFoundError):
    """
    Raised when a portfolio cannot be found or is not owned by the caller.

    Attributes:
        portfolio_id: ID of the portfolio that was not found (None when the
            user has no portfolio at all)
    """

    def __init__(self, portfolio_id: int | None) -> None:
        self.portfolio_id = portfolio_id
        message = (
            f"Portfolio {portfolio_id} not found"
            if portfolio_id is not None
            else "No portfolio found"
        )
        super().__init__(
            message,
            resource_type="Portfolio",
            resource_id=portfolio_id,
        )


class AssetNotFoundError(NotFoundError):
    """Raised when an asset id does not exist."""

    def __init__(self, asset_id: int) -> None:
        self.asset_id = asset_id
        super().__init__(
            f"Asset {asset_id} not found",
            resource_type="Asset",
            resource_id=asset_id,
        )


class HoldingNotFoundError(NotFoundError):
    """Raised when a holding does not exist or belongs to another user."""

    def __init__(self, holding_id: int) -> None:
        self.holding_id = holding_id
        super().__init__(
            f"Holding {holding_id} not found",
            resource_type="Holding",
            resource_id=holding_id,
        )


# =============================================================================
# CALIBRATION ERRORS
# =============================================================================


class CalibrationError(ServiceError):
    """Base exception for calibration failures."""
    pass


class CalibrationNotPossibleError(CalibrationError):
    """
    Raised when a calibration factor cannot be derived.

    A reference value can only be anchored to a portfolio whose unadjusted
    EUR value is positive; an empty or fully unpriced portfolio would
    produce an infinite factor.

    Attributes:
        portfolio_id: The portfolio that was measured
        raw_value_eur: The unadjusted EUR value that was measured
    """

    def __init__(self, portfolio_id: int, raw_value_eur: Decimal) -> None:
        self.portfolio_id = portfolio_id
        self.raw_value_eur = raw_value_eur
        super().__init__(
            f"Cannot calibrate portfolio {portfolio_id}: "
            f"calculated value is {raw_value_eur} EUR"
        )


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """
    Base exception for FX rate errors.

    Attributes:
        base_currency: The base currency code
        quote_currency: The quote currency code
    """

    def __init__(
            self,
            message: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        super().__init__(message)


class FXRateNotFoundError(FXRateError):
    """
    Raised when no source could provide a rate for a currency pair.

    This happens when the ECB does not publish the currency and Yahoo
    Finance has neither a direct nor a USD cross quote for it.
    """

    def __init__(
            self,
            base_currency: str,
            quote_currency: str,
            message: str | None = None,
    ) -> None:
        msg = message or f"No FX rate available for {base_currency}/{quote_currency}"
        super().__init__(msg, base_currency=base_currency, quote_currency=quote_currency)


class FXProviderError(FXRateError):
    """
    Raised when an FX data source fails.

    This is a retryable error caused by:
    - Network issues and timeouts
    - Upstream server errors
    - Malformed responses

    Attributes:
        provider: Name of the FX data source
        reason: Specific reason for failure
    """

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"FX provider '{provider}' error: {reason}")


# =============================================================================
# MARKET DATA ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data (asset quote) failures.

    Attributes:
        provider: Name of the market data source
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a quote source cannot be reached or answers garbage.

    Retryable: the quote source retries it with backoff before giving up.

    Attributes:
        provider: Name of the market data source
        reason: Specific reason for failure
    """

    def __init__(self, provider: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Market data provider '{provider}' error: {reason}", provider=provider)


# =============================================================================
# AUTHENTICATION ERRORS
# =============================================================================


class AuthenticationError(ServiceError):
    """Base exception for authentication failures."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when a bearer token is malformed, tampered with or of the wrong type."""
    pass


class TokenExpiredError(AuthenticationError):
    """
    Raised when a token's expiry has passed.

    Attributes:
        token_type: Kind of token that expired (e.g. "access")
    """

    def __init__(self, message: str, token_type: str = "access") -> None:
        self.token_type = token_type
        super().__init__(message)


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    # Not Found
    "NotFoundError",
    "PortfolioNotFoundError",
    "AssetNotFoundError",
    "HoldingNotFoundError",
    # Calibration
    "CalibrationError",
    "CalibrationNotPossibleError",
    # FX Rate
    "FXRateError",
    "FXRateNotFoundError",
    "FXProviderError",
    # Authentication
    "AuthenticationError",
    "InvalidCredentialsError",
    "TokenExpiredError",
]
