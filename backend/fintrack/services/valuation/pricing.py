# backend/fintrack/services/valuation/pricing.py
"""
Per-holding pricing strategies.

Every holding is priced into EUR by exactly one strategy, chosen once from
its native currency before any arithmetic runs:

- AdjustmentFactorPricing: the asset is already quoted in EUR. Prices are
  multiplied by the user's calibration factor and never FX-converted.
- FxConversionPricing: the asset is quoted in another currency. Prices are
  multiplied by the currency's EUR rate and never receive the factor.

Usage:
    strategy = resolve_pricing("USD", fx_table, eur_adjustment_factor)
    price_eur = strategy.to_eur(Decimal("100"))
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from fintrack.services.constants import REPORTING_CURRENCY
from fintrack.services.valuation.types import FxRateTable


@dataclass(frozen=True)
class AdjustmentFactorPricing:
    """EUR-native pricing with the user's calibration factor."""

    factor: Decimal

    kind = "adjustment_factor"

    @property
    def rate(self) -> Decimal:
        return self.factor

    def to_eur(self, price: Decimal) -> Decimal:
        return price * self.factor


@dataclass(frozen=True)
class FxConversionPricing:
    """Foreign-currency pricing with a currency -> EUR rate."""

    currency: str
    fx_rate: Decimal

    kind = "fx_conversion"

    @property
    def rate(self) -> Decimal:
        return self.fx_rate

    def to_eur(self, price: Decimal) -> Decimal:
        return price * self.fx_rate


PricingStrategy = Union[AdjustmentFactorPricing, FxConversionPricing]


def resolve_pricing(
        currency: str,
        fx_table: FxRateTable,
        eur_adjustment_factor: Decimal,
) -> PricingStrategy:
    """
    Pick the pricing strategy for a holding's native currency.

    Args:
        currency: ISO code the asset is quoted in
        fx_table: Rates for this valuation (exact match, else USD fallback)
        eur_adjustment_factor: User factor, only used for EUR assets

    Returns:
        AdjustmentFactorPricing for EUR, FxConversionPricing otherwise
    """
    code = currency.upper()
    if code == REPORTING_CURRENCY:
        return AdjustmentFactorPricing(factor=eur_adjustment_factor)
    return FxConversionPricing(currency=code, fx_rate=fx_table.rate_for(code))
