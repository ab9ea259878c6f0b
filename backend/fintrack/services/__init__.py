# backend/fintrack/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Are easily testable via dependency injection

Usage:
    from fintrack.services import PortfolioService, CalibrationService
    from fintrack.services import ValuationEngine, FxRateTable
    from fintrack.services import (
        PortfolioNotFoundError,
        CalibrationNotPossibleError,
        FXRateNotFoundError,
    )

Architecture:
    services/
    ├── __init__.py                # This file - main exports
    ├── exceptions.py              # Domain exceptions
    ├── constants.py               # Precisions, FX bounds, rate limits
    ├── asset_service.py           # Asset registry and price refresh
    ├── holdings.py                # Holdings repository and CRUD
    ├── portfolio_service.py       # Portfolio access and valuation entry point
    ├── calibration_service.py     # EUR adjustment factor resolution
    ├── user_settings_service.py   # Per-user calibration settings store
    ├── auth/                      # JWT access tokens
    ├── fx/                        # FX rate sources, cache and service
    ├── market_data/               # Retry base and Yahoo asset quotes
    └── valuation/                 # Pure valuation engine
        ├── engine.py              # ValuationEngine (two-pass evaluation)
        ├── pricing.py             # Per-holding pricing strategies
        └── types.py               # Value objects
"""

from fintrack.services.asset_service import (
    AssetImportResult,
    AssetService,
    PriceRefreshResult,
)
from fintrack.services.calibration_service import (
    AssetCalibrationResult,
    CalibrationResult,
    CalibrationService,
    CalibrationStatus,
)
from fintrack.services.exceptions import (
    AssetNotFoundError,
    AuthenticationError,
    CalibrationError,
    CalibrationNotPossibleError,
    FXProviderError,
    FXRateError,
    FXRateNotFoundError,
    HoldingNotFoundError,
    InvalidCredentialsError,
    MarketDataError,
    NotFoundError,
    PortfolioNotFoundError,
    ProviderUnavailableError,
    ServiceError,
    TokenExpiredError,
    ValidationError,
)
from fintrack.services.fx import FxRateService
from fintrack.services.holdings import HoldingService, HoldingsRepository
from fintrack.services.market_data import PriceQuote, YahooQuoteSource
from fintrack.services.portfolio_service import PortfolioService
from fintrack.services.user_settings_service import UserSettingsStore
from fintrack.services.valuation import (
    FxRateTable,
    HoldingInput,
    HoldingPerformance,
    PortfolioPerformance,
    ValuationEngine,
)

__all__ = [
    # Services
    "PortfolioService",
    "CalibrationService",
    "AssetService",
    "HoldingService",
    "HoldingsRepository",
    "UserSettingsStore",
    "FxRateService",
    "YahooQuoteSource",
    "ValuationEngine",
    # Types
    "FxRateTable",
    "HoldingInput",
    "HoldingPerformance",
    "PortfolioPerformance",
    "CalibrationResult",
    "CalibrationStatus",
    "AssetCalibrationResult",
    "AssetImportResult",
    "PriceRefreshResult",
    "PriceQuote",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "PortfolioNotFoundError",
    "AssetNotFoundError",
    "HoldingNotFoundError",
    "CalibrationError",
    "CalibrationNotPossibleError",
    "FXRateError",
    "FXRateNotFoundError",
    "FXProviderError",
    "MarketDataError",
    "ProviderUnavailableError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "TokenExpiredError",
]
