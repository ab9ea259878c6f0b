# backend/fintrack/schemas/portfolios.py
"""
Pydantic schemas for Portfolio operations.

- PortfolioCreate: what clients send (owner comes from the JWT)
- PortfolioResponse: list / create responses
- PortfolioDetailResponse: portfolio with its current performance
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fintrack.schemas.performance import PortfolioPerformanceResponse


class PortfolioCreate(BaseModel):
    """Schema for creating a new portfolio."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        examples=["Long Term", "Crypto"],
        description="Name of the portfolio"
    )
    description: str | None = Field(
        default=None,
        max_length=500,
        description="Optional free-text description"
    )

    @field_validator('name')
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class PortfolioResponse(BaseModel):
    """Schema for returning portfolio data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class PortfolioDetailResponse(PortfolioResponse):
    """Portfolio with its valuation."""

    performance: PortfolioPerformanceResponse
