# backend/fintrack/schemas/calibration.py
"""
Pydantic schemas for EUR calibration.

Portfolio calibration anchors the computed EUR value of a portfolio to a
reference value (e.g. the broker's display). Per-asset calibration stores
a single reference price per asset.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class SetReferenceRequest(BaseModel):
    """Reference EUR value to calibrate against."""

    reference_value: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=2,
        examples=["9972.84"],
        description="Trusted EUR value of the portfolio"
    )
    portfolio_id: int | None = Field(
        default=None,
        gt=0,
        description="Portfolio to calibrate (default: your oldest portfolio)"
    )


class AssetCalibrationRequest(BaseModel):
    """Reference price for one asset, in the asset's currency."""

    reference_price: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        examples=["187.42"],
    )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class CalibrationResponse(BaseModel):
    """Result of a portfolio calibration."""

    model_config = ConfigDict(from_attributes=True)

    portfolio_id: int
    reference_value: Decimal
    calculated_value: Decimal = Field(..., description="Unadjusted EUR value (factor 1.0)")
    adjustment_factor: Decimal
    adjustment_percent: str = Field(..., examples=["+10.81%"])
    last_calibration_at: datetime
    message: str


class CalibrationStatusResponse(BaseModel):
    """Current calibration state; calibrated is false until a reference is set."""

    model_config = ConfigDict(from_attributes=True)

    calibrated: bool
    adjustment_factor: Decimal
    adjustment_percent: str = Field(..., examples=["+0.00%"])
    reference_portfolio_value: Decimal | None = None
    last_calibration_at: datetime | None = None


class AssetCalibrationResponse(BaseModel):
    """Stored calibration of one asset."""

    model_config = ConfigDict(from_attributes=True)

    asset_id: int
    symbol: str
    currency: str
    reference_price: Decimal | None
    current_price: Decimal | None
    adjustment_factor: Decimal
    adjustment_percent: str
    updated_at: datetime
