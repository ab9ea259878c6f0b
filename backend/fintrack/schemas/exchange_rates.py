# backend/fintrack/schemas/exchange_rates.py
"""
Pydantic schemas for FX rate responses.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class FxRatesResponse(BaseModel):
    """Current currency -> EUR rates (1 unit of currency = rate EUR)."""

    base_currency: str = Field(default="EUR", description="Reporting currency")
    usd_rate: Decimal = Field(..., description="USD -> EUR rate used as fallback")
    rates: dict[str, Decimal] = Field(
        ...,
        description="Currency code -> EUR rate",
        examples=[{"EUR": "1", "USD": "0.92", "GBP": "1.17"}],
    )
