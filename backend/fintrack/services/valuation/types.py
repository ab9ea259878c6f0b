# backend/fintrack/services/valuation/types.py
"""
Internal data types for the ValuationEngine.

These dataclasses are used internally by the valuation engine.
They are NOT Pydantic schemas - those are defined in fintrack/schemas/performance.py
for API serialization.

Design Principles:
- Immutable (frozen=True) value objects; the engine never mutates its inputs
- Use Decimal for ALL financial values (never float)
- Native-currency prices stay in the asset's currency; avg_buy_price is EUR
- Missing prices are None on input and resolved by the engine, not here

Type Hierarchy:
    HoldingInput          - One holding joined with its asset's price data
    FxRateTable           - currency -> EUR rates plus the USD fallback rate
    HoldingPerformance    - Computed figures for one holding
    PortfolioPerformance  - Aggregate figures for one portfolio
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping

from fintrack.services.constants import FALLBACK_CURRENCY, REPORTING_CURRENCY


# =============================================================================
# INPUTS
# =============================================================================

@dataclass(frozen=True)
class HoldingInput:
    """
    A holding joined with the price data of its asset.

    Attributes:
        holding_id: Database ID of the holding
        asset_id: Database ID of the asset
        symbol: Asset symbol (e.g. "AAPL", "SAP.DE")
        name: Asset display name
        asset_type: Asset type value (STOCK, CRYPTO, ...)
        currency: ISO code of current_price / previous_close
        quantity: Units held
        avg_buy_price: Average acquisition price per unit, already in EUR
        current_price: Latest price in native currency (None = no live price)
        previous_close: Previous close in native currency (None = unknown)
    """

    holding_id: int
    asset_id: int
    symbol: str
    name: str
    asset_type: str
    currency: str
    quantity: Decimal
    avg_buy_price: Decimal
    current_price: Decimal | None = None
    previous_close: Decimal | None = None


@dataclass(frozen=True)
class FxRateTable:
    """
    Currency -> EUR conversion rates for one valuation call.

    A rate of 0.92 for "USD" means 1 USD = 0.92 EUR.

    Attributes:
        rates: Rates for every currency that could be resolved
        usd_rate: USD -> EUR rate, used for any currency missing from rates
    """

    rates: Mapping[str, Decimal] = field(default_factory=dict)
    usd_rate: Decimal = Decimal("1")

    def rate_for(self, currency: str) -> Decimal:
        """Exact rate for currency, else the USD fallback rate."""
        rate = self.rates.get(currency.upper())
        if rate is None:
            return self.usd_rate
        return rate

    @classmethod
    def identity(cls) -> FxRateTable:
        """Table for valuations that need no conversion (EUR only or empty)."""
        return cls(rates={REPORTING_CURRENCY: Decimal("1")}, usd_rate=Decimal("1"))

    @classmethod
    def from_rates(cls, rates: Mapping[str, Decimal], usd_rate: Decimal) -> FxRateTable:
        """Build a table, normalizing codes and pinning EUR and USD."""
        normalized = {code.upper(): rate for code, rate in rates.items()}
        normalized[REPORTING_CURRENCY] = Decimal("1")
        normalized.setdefault(FALLBACK_CURRENCY, usd_rate)
        return cls(rates=normalized, usd_rate=usd_rate)


# =============================================================================
# OUTPUTS
# =============================================================================

@dataclass(frozen=True)
class HoldingPerformance:
    """
    Computed performance for one holding.

    EUR figures are primary; current_price / current_value are the native
    currency figures shown alongside them.

    Attributes:
        current_price: Native price used (0 when no live price)
        current_value: quantity x current_price, native, unrounded
        current_price_eur: Converted unit price, rounded to 8 places (display only)
        current_value_eur: quantity x converted price, rounded to cents
        total_cost_eur: quantity x avg_buy_price, rounded to cents
        profit_loss_eur: current_value_eur - total_cost_eur
        profit_loss_percent: profit_loss_eur / total_cost_eur x 100 (0 if no cost)
        daily_change_eur: quantity x (converted price - converted previous close)
        weight: Share of the portfolio's EUR value in percent
        pricing: "adjustment_factor" (EUR assets) or "fx_conversion"
        eur_rate: The factor or FX rate that was applied
    """

    holding_id: int
    asset_id: int
    symbol: str
    name: str
    asset_type: str
    currency: str
    quantity: Decimal
    avg_buy_price: Decimal
    current_price: Decimal
    current_value: Decimal
    current_price_eur: Decimal
    current_value_eur: Decimal
    total_cost_eur: Decimal
    profit_loss_eur: Decimal
    profit_loss_percent: Decimal
    daily_change_eur: Decimal
    weight: Decimal
    pricing: str
    eur_rate: Decimal


@dataclass(frozen=True)
class PortfolioPerformance:
    """
    Aggregate performance for one portfolio.

    Attributes:
        total_value_eur: Sum of holding EUR values
        total_cost_eur: Sum of holding EUR costs
        total_return_eur: total_value_eur - total_cost_eur
        total_return_percent: total_return_eur / total_cost_eur x 100 (0 if no cost)
        daily_change_eur: Sum of holding daily changes
        daily_change_percent: Change relative to the implied previous total
        total_value: Sum of native values (mixed currencies, indicative only)
        total_cost: total_cost_eur expressed in USD via the fallback rate
        total_return: total_value - total_cost (indicative only)
        eur_rate: USD -> EUR rate used for the secondary figures
        eur_adjustment_factor: Factor applied to EUR-denominated holdings
        holdings: Per-holding results, in input order
    """

    total_value_eur: Decimal
    total_cost_eur: Decimal
    total_return_eur: Decimal
    total_return_percent: Decimal
    daily_change_eur: Decimal
    daily_change_percent: Decimal
    total_value: Decimal
    total_cost: Decimal
    total_return: Decimal
    eur_rate: Decimal
    eur_adjustment_factor: Decimal
    holdings: list[HoldingPerformance] = field(default_factory=list)

    @property
    def holding_count(self) -> int:
        return len(self.holdings)

    @classmethod
    def empty(cls, eur_adjustment_factor: Decimal = Decimal("1")) -> PortfolioPerformance:
        """Canonical zero-valued aggregate for a portfolio without holdings."""
        zero = Decimal("0.00")
        return cls(
            total_value_eur=zero,
            total_cost_eur=zero,
            total_return_eur=zero,
            total_return_percent=zero,
            daily_change_eur=zero,
            daily_change_percent=zero,
            total_value=zero,
            total_cost=zero,
            total_return=zero,
            eur_rate=Decimal("1"),
            eur_adjustment_factor=eur_adjustment_factor,
            holdings=[],
        )
