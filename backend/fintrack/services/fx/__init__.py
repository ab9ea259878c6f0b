# backend/fintrack/services/fx/__init__.py
"""
FX rate package.

Usage:
    from fintrack.services.fx import FxRateService

    service = FxRateService()
    table = service.build_rate_table(["USD", "GBP", "EUR"])
    rate = table.rate_for("GBP")

Architecture:
    fx/
    ├── __init__.py      # This file - package exports
    ├── sources.py       # ECB (httpx) and Yahoo Finance (yfinance) sources
    ├── cache.py         # Thread-safe TTL LRU cache
    └── service.py       # FxRateService (fallback chain, concurrent fan-out)
"""

from fintrack.services.fx.cache import RateCache
from fintrack.services.fx.service import FxRateService
from fintrack.services.fx.sources import EcbRateSource, FxRateSource, YahooRateSource

__all__ = [
    "FxRateService",
    "FxRateSource",
    "EcbRateSource",
    "YahooRateSource",
    "RateCache",
]
