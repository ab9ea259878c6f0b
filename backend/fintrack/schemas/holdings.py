# backend/fintrack/schemas/holdings.py
"""
Pydantic schemas for Holding operations.

avg_buy_price is always in EUR: conversion happens when the holding is
recorded, never during valuation.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HoldingCreate(BaseModel):
    """Add an asset to a portfolio (updates the holding if already present)."""

    asset_id: int = Field(..., gt=0, description="Asset to hold")
    quantity: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        examples=["10", "0.5"],
        description="Units held"
    )
    avg_buy_price: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        examples=["100.00"],
        description="Average buy price per unit in EUR"
    )


class HoldingUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""

    asset_id: int | None = Field(default=None, gt=0)
    quantity: Decimal | None = Field(default=None, gt=0, max_digits=18, decimal_places=8)
    avg_buy_price: Decimal | None = Field(default=None, gt=0, max_digits=18, decimal_places=8)

    @model_validator(mode="after")
    def check_not_empty(self) -> "HoldingUpdate":
        if self.asset_id is None and self.quantity is None and self.avg_buy_price is None:
            raise ValueError("At least one field must be provided")
        return self


class HoldingResponse(BaseModel):
    """Stored holding (unvalued)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    portfolio_id: int
    asset_id: int
    quantity: Decimal
    avg_buy_price: Decimal
    created_at: datetime
    updated_at: datetime
