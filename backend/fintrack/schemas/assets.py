# backend/fintrack/schemas/assets.py
"""
Pydantic schemas for the asset registry.

Prices are in the asset's native currency; they are converted to EUR only
when a portfolio is valued.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fintrack.models import AssetType


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class AssetImport(BaseModel):
    """Register a symbol and seed its prices from Yahoo Finance."""

    symbol: str = Field(
        ...,
        min_length=1,
        max_length=20,
        examples=["AAPL", "SAP.DE", "BTC"],
        description="Yahoo Finance symbol, or a bare ticker for crypto"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        examples=["Apple Inc."],
        description="Display name"
    )
    asset_type: AssetType = Field(default=AssetType.STOCK, description="Type of asset")
    currency: str | None = Field(
        default=None,
        min_length=3,
        max_length=3,
        pattern=r"^[A-Za-z]{3}$",
        examples=["USD", "EUR"],
        description="Currency to record if Yahoo Finance reports none (default USD)"
    )

    @field_validator('symbol')
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        """Normalize symbol: trim whitespace and uppercase."""
        return v.strip().upper()

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class PriceRefreshRequest(BaseModel):
    """Assets to refresh; omit asset_ids to refresh every asset."""

    asset_ids: list[int] | None = Field(default=None, min_length=1)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class AssetResponse(BaseModel):
    """Registered asset with its latest prices."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    name: str
    asset_type: AssetType = Field(..., validation_alias="type")
    currency: str = Field(..., description="Currency of current_price and previous_close")
    current_price: Decimal | None = Field(None, description="Latest price (null until quoted)")
    previous_close: Decimal | None = None
    change_percent: Decimal | None = None
    updated_at: datetime


class AssetListResponse(BaseModel):
    """Page of assets ordered by symbol."""

    items: list[AssetResponse]
    total: int
    skip: int
    limit: int


class PriceRefreshResponse(BaseModel):
    """Outcome of a price refresh."""

    message: str
    updated: int
    errors: list[str] = Field(
        default_factory=list,
        description="One 'SYMBOL: reason' entry per asset whose prices were kept"
    )
