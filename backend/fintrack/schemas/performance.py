# backend/fintrack/schemas/performance.py
"""
Pydantic schemas for portfolio performance.

Mirror the valuation engine's HoldingPerformance / PortfolioPerformance
dataclasses; build them with model_validate(performance). Decimal fields
are serialized as strings so no precision is lost on the way to the
dashboard.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class HoldingPerformanceResponse(BaseModel):
    """Valued holding."""

    model_config = ConfigDict(from_attributes=True)

    holding_id: int
    asset_id: int
    symbol: str
    name: str
    asset_type: str = Field(..., description="STOCK, CRYPTO, ETF, BOND or COMMODITY")
    currency: str = Field(..., description="Native currency of the asset's prices")
    quantity: Decimal
    avg_buy_price: Decimal = Field(..., description="Average buy price per unit in EUR")
    current_price: Decimal = Field(..., description="Latest price, native currency (0 if none)")
    current_value: Decimal = Field(..., description="quantity x current_price, native currency")
    current_price_eur: Decimal = Field(..., description="Converted unit price (8 decimals)")
    current_value_eur: Decimal
    total_cost_eur: Decimal
    profit_loss_eur: Decimal
    profit_loss_percent: Decimal
    daily_change_eur: Decimal
    weight: Decimal = Field(..., description="Share of portfolio EUR value, percent")
    pricing: str = Field(
        ...,
        description="How the EUR price was derived: adjustment_factor or fx_conversion",
        examples=["adjustment_factor", "fx_conversion"],
    )
    eur_rate: Decimal = Field(..., description="Adjustment factor or FX rate applied")


class PortfolioPerformanceResponse(BaseModel):
    """Aggregate performance of a portfolio in EUR."""

    model_config = ConfigDict(from_attributes=True)

    total_value_eur: Decimal
    total_cost_eur: Decimal
    total_return_eur: Decimal
    total_return_percent: Decimal
    daily_change_eur: Decimal
    daily_change_percent: Decimal
    total_value: Decimal = Field(
        ...,
        description="Sum of native values across currencies (indicative only)"
    )
    total_cost: Decimal = Field(
        ...,
        description="EUR cost expressed in USD via the USD rate (indicative only)"
    )
    total_return: Decimal = Field(..., description="total_value - total_cost (indicative only)")
    eur_rate: Decimal = Field(..., description="USD -> EUR rate used for the secondary totals")
    eur_adjustment_factor: Decimal = Field(
        ...,
        description="Calibration factor applied to EUR-denominated holdings"
    )
    holding_count: int
    holdings: list[HoldingPerformanceResponse]
