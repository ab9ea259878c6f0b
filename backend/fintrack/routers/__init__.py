# backend/fintrack/routers/__init__.py
"""
API routers for FinTrack.

- portfolios: Portfolio CRUD and performance
- holdings: Holding CRUD and valued listing
- calibration: EUR calibration (portfolio and per asset)
- fx: Current EUR rates
- assets: Asset registry and price refresh
"""

from fintrack.routers.assets import router as assets_router
from fintrack.routers.calibration import router as calibration_router
from fintrack.routers.fx import router as fx_router
from fintrack.routers.holdings import router as holdings_router
from fintrack.routers.portfolios import router as portfolios_router

__all__ = [
    "portfolios_router",
    "holdings_router",
    "calibration_router",
    "fx_router",
    "assets_router",
]
