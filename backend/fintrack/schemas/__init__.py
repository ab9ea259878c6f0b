# backend/fintrack/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

- assets: Asset registry and price refresh
- calibration: EUR calibration requests and status
- errors: Error response formats
- exchange_rates: FX rate responses
- holdings: Holding CRUD
- performance: Valuation output (holdings and aggregate)
- portfolios: Portfolio CRUD and detail

Usage:
    from fintrack.schemas import PortfolioCreate, PortfolioDetailResponse
    from fintrack.schemas import SetReferenceRequest, CalibrationResponse
"""

from fintrack.schemas.assets import (
    AssetImport,
    AssetListResponse,
    AssetResponse,
    PriceRefreshRequest,
    PriceRefreshResponse,
)
from fintrack.schemas.calibration import (
    AssetCalibrationRequest,
    AssetCalibrationResponse,
    CalibrationResponse,
    CalibrationStatusResponse,
    SetReferenceRequest,
)
from fintrack.schemas.errors import (
    ErrorDetail,
    ValidationErrorDetail,
)
from fintrack.schemas.exchange_rates import FxRatesResponse
from fintrack.schemas.holdings import (
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
)
from fintrack.schemas.performance import (
    HoldingPerformanceResponse,
    PortfolioPerformanceResponse,
)
from fintrack.schemas.portfolios import (
    PortfolioCreate,
    PortfolioDetailResponse,
    PortfolioResponse,
)

__all__ = [
    # Assets
    "AssetImport",
    "PriceRefreshRequest",
    "AssetResponse",
    "AssetListResponse",
    "PriceRefreshResponse",
    # Calibration
    "SetReferenceRequest",
    "AssetCalibrationRequest",
    "CalibrationResponse",
    "CalibrationStatusResponse",
    "AssetCalibrationResponse",
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Exchange rates
    "FxRatesResponse",
    # Holdings
    "HoldingCreate",
    "HoldingUpdate",
    "HoldingResponse",
    # Performance
    "HoldingPerformanceResponse",
    "PortfolioPerformanceResponse",
    # Portfolios
    "PortfolioCreate",
    "PortfolioResponse",
    "PortfolioDetailResponse",
]
