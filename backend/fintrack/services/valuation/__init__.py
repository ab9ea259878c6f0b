# backend/fintrack/services/valuation/__init__.py
"""
Valuation Package.

This package provides the pure portfolio valuation engine:
- Currency normalization into EUR (FX rate or calibration factor per holding)
- Cost basis, unrealized P&L and daily change per holding
- Portfolio totals and weights

Usage:
    from fintrack.services.valuation import ValuationEngine, FxRateTable

    engine = ValuationEngine()
    performance = engine.evaluate(holdings, fx_table, eur_adjustment_factor)

Architecture:
    valuation/
    ├── __init__.py      # This file - package exports
    ├── types.py         # Input/output data classes
    ├── pricing.py       # Per-holding pricing strategies
    └── engine.py        # ValuationEngine (two-pass computation)

Data Flow:
    HoldingInput + FxRateTable + factor → resolve_pricing → PricingStrategy
    PricingStrategy + prices → per-holding figures (pass 1) → totals
    totals → weights (pass 2) → PortfolioPerformance
"""

from fintrack.services.valuation.engine import ValuationEngine
from fintrack.services.valuation.pricing import (
    AdjustmentFactorPricing,
    FxConversionPricing,
    PricingStrategy,
    resolve_pricing,
)
from fintrack.services.valuation.types import (
    FxRateTable,
    HoldingInput,
    HoldingPerformance,
    PortfolioPerformance,
)

__all__ = [
    # Engine
    "ValuationEngine",

    # Data types
    "HoldingInput",
    "FxRateTable",
    "HoldingPerformance",
    "PortfolioPerformance",

    # Pricing strategies
    "AdjustmentFactorPricing",
    "FxConversionPricing",
    "PricingStrategy",
    "resolve_pricing",
]
