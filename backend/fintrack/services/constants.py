# backend/fintrack/services/constants.py
"""
Centralized constants for the FinTrack services.

This module provides a single source of truth for business constants used
across the application: reporting currency, decimal precisions, FX source
bounds, cache sizes and API rate limits.

Usage:
    from fintrack.services.constants import (
        REPORTING_CURRENCY,
        MONEY_PRECISION,
        RATE_LIMIT_DEFAULT,
    )
"""

from decimal import Decimal


# =============================================================================
# CURRENCY
# =============================================================================

# Canonical reporting currency. EUR prices are never FX-converted;
# they receive the user's adjustment factor instead.
REPORTING_CURRENCY: str = "EUR"

# Currency whose EUR rate doubles as the fallback for unresolved currencies
FALLBACK_CURRENCY: str = "USD"


# =============================================================================
# DECIMAL PRECISION
# =============================================================================

# Monetary amounts (values, costs, P&L) are reported in cents
MONEY_PRECISION: Decimal = Decimal("0.01")

# Display precision for converted unit prices (crypto needs 8 places)
PRICE_PRECISION: Decimal = Decimal("0.00000001")

# Percentages (P&L %, weights, daily change %)
PERCENT_PRECISION: Decimal = Decimal("0.01")

# Adjustment factors (10 places keeps a 1M EUR portfolio exact to the cent)
FACTOR_PRECISION: Decimal = Decimal("0.0000000001")

# Default (uncalibrated) adjustment factor
DEFAULT_ADJUSTMENT_FACTOR: Decimal = Decimal("1")

# Calibrations of one user run one at a time. Users are hashed onto a
# fixed pool of locks so the pool never grows with the user count.
CALIBRATION_LOCK_STRIPES: int = 64


# =============================================================================
# FX SOURCE SANITY BOUNDS
# =============================================================================

# ECB publishes 1 EUR = X USD. The inverted USD->EUR rate is only accepted
# inside this band; anything else is treated as a bad document.
USD_EUR_MIN_RATE: Decimal = Decimal("0.5")
USD_EUR_MAX_RATE: Decimal = Decimal("1.5")

# Upper bound (exclusive) for any other inverted ECB rate
MAX_TO_EUR_RATE: Decimal = Decimal("100")


# =============================================================================
# FX CACHE SETTINGS
# =============================================================================

# Maximum number of cached currency rates per cache
FX_CACHE_MAX_SIZE: int = 256


# =============================================================================
# MARKET DATA SOURCES
# =============================================================================

# Retry settings for upstream sources: ECB, Yahoo FX pairs and Yahoo quotes
# (tenacity exponential backoff)
SOURCE_MAX_RETRY_ATTEMPTS: int = 3
SOURCE_RETRY_MULTIPLIER: float = 0.5
SOURCE_RETRY_MIN_WAIT: float = 0.5
SOURCE_RETRY_MAX_WAIT: float = 4.0

# Concurrent Yahoo quote requests during a price refresh
PRICE_REFRESH_MAX_WORKERS: int = 8

# Yahoo quotes some exchanges in minor units: code -> (ISO code, divisor)
MINOR_UNIT_CURRENCIES: dict[str, tuple[str, Decimal]] = {
    "GBp": ("GBP", Decimal("100")),
    "GBX": ("GBP", Decimal("100")),
    "ZAc": ("ZAR", Decimal("100")),
}


# =============================================================================
# API RATE LIMITS
# =============================================================================
# Format: "<count>/<period>" (slowapi syntax)

# Default limit for read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Write endpoints (create/update/delete holdings and portfolios)
RATE_LIMIT_WRITE: str = "30/minute"

# Calibration writes trigger a full valuation with live FX lookups
RATE_LIMIT_CALIBRATION: str = "10/minute"

# Price refresh fetches a quote for every tracked asset
RATE_LIMIT_PRICE_REFRESH: str = "5/minute"

# Health checks (load balancers poll frequently)
RATE_LIMIT_HEALTH: str = "300/minute"
