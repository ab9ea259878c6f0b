# backend/fintrack/services/holdings.py
"""
Holdings persistence: read side for valuation and write side for the API.

HoldingsRepository returns holdings joined with their asset's price data as
HoldingInput value objects, ready for the ValuationEngine.

HoldingService manages the lifecycle of holdings:
- Upsert by (portfolio, asset): adding an asset twice updates the holding
- Update / delete scoped to the owning user
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from fintrack.models import Asset, Holding, Portfolio
from fintrack.services.exceptions import (
    AssetNotFoundError,
    HoldingNotFoundError,
    ValidationError,
)
from fintrack.services.valuation.types import HoldingInput

logger = logging.getLogger(__name__)


# =============================================================================
# READ SIDE
# =============================================================================

class HoldingsRepository:
    """Loads holdings joined with their assets."""

    def get_holdings_for_portfolio(self, db: Session, portfolio_id: int) -> list[HoldingInput]:
        """
        All holdings of a portfolio with their asset's currency and prices.

        Ordered by holding id so valuations list holdings in a stable order.
        """
        holdings = db.scalars(
            select(Holding)
            .options(joinedload(Holding.asset))
            .where(Holding.portfolio_id == portfolio_id)
            .order_by(Holding.id)
        ).all()
        return [self.to_input(holding) for holding in holdings]

    @staticmethod
    def to_input(holding: Holding) -> HoldingInput:
        asset = holding.asset
        return HoldingInput(
            holding_id=holding.id,
            asset_id=asset.id,
            symbol=asset.symbol,
            name=asset.name,
            asset_type=asset.type.value,
            currency=asset.currency.upper(),
            quantity=holding.quantity,
            avg_buy_price=holding.avg_buy_price,
            current_price=asset.current_price,
            previous_close=asset.previous_close,
        )


# =============================================================================
# WRITE SIDE
# =============================================================================

@dataclass
class HoldingUpsertResult:
    """Result of adding a holding to a portfolio."""

    holding: Holding
    was_created: bool


class HoldingService:
    """Creates, updates and deletes holdings."""

    def upsert_holding(
            self,
            db: Session,
            portfolio_id: int,
            asset_id: int,
            quantity: Decimal,
            avg_buy_price: Decimal,
    ) -> HoldingUpsertResult:
        """
        Add an asset to a portfolio, or overwrite the existing holding.

        Args:
            portfolio_id: Target portfolio (ownership already verified)
            asset_id: Asset to hold
            quantity: Units held (> 0)
            avg_buy_price: Average price per unit in EUR (> 0)

        Raises:
            AssetNotFoundError: Unknown asset_id
            ValidationError: Non-positive quantity or price
        """
        self._validate_amounts(quantity, avg_buy_price)
        if db.get(Asset, asset_id) is None:
            raise AssetNotFoundError(asset_id)

        holding = db.scalar(
            select(Holding)
            .where(Holding.portfolio_id == portfolio_id, Holding.asset_id == asset_id)
        )
        was_created = holding is None
        if holding is None:
            holding = Holding(
                portfolio_id=portfolio_id,
                asset_id=asset_id,
                quantity=quantity,
                avg_buy_price=avg_buy_price,
            )
            db.add(holding)
        else:
            holding.quantity = quantity
            holding.avg_buy_price = avg_buy_price

        db.commit()
        db.refresh(holding)

        action = "Created" if was_created else "Updated"
        logger.info(
            f"{action} holding {holding.id} in portfolio {portfolio_id}: "
            f"asset={asset_id}, quantity={quantity}, avg_buy_price={avg_buy_price}"
        )
        return HoldingUpsertResult(holding=holding, was_created=was_created)

    def get_owned_holding(self, db: Session, user_id: int, holding_id: int) -> Holding:
        """
        Fetch a holding that belongs to one of the user's portfolios.

        Raises:
            HoldingNotFoundError: Missing, or owned by someone else
        """
        holding = db.scalar(
            select(Holding)
            .join(Portfolio, Holding.portfolio_id == Portfolio.id)
            .options(joinedload(Holding.asset))
            .where(Holding.id == holding_id, Portfolio.user_id == user_id)
        )
        if holding is None:
            raise HoldingNotFoundError(holding_id)
        return holding

    def update_holding(
            self,
            db: Session,
            user_id: int,
            holding_id: int,
            asset_id: int | None = None,
            quantity: Decimal | None = None,
            avg_buy_price: Decimal | None = None,
    ) -> Holding:
        """
        Partially update a holding.

        Raises:
            HoldingNotFoundError: Missing, or owned by someone else
            AssetNotFoundError: Unknown replacement asset_id
            ValidationError: Non-positive amounts, or the portfolio already
                holds the replacement asset
        """
        holding = self.get_owned_holding(db, user_id, holding_id)

        if quantity is not None or avg_buy_price is not None:
            self._validate_amounts(
                quantity if quantity is not None else holding.quantity,
                avg_buy_price if avg_buy_price is not None else holding.avg_buy_price,
            )

        if asset_id is not None and asset_id != holding.asset_id:
            if db.get(Asset, asset_id) is None:
                raise AssetNotFoundError(asset_id)
            duplicate = db.scalar(
                select(Holding.id)
                .where(Holding.portfolio_id == holding.portfolio_id, Holding.asset_id == asset_id)
            )
            if duplicate is not None:
                raise ValidationError(
                    f"Portfolio {holding.portfolio_id} already holds asset {asset_id}",
                    field="asset_id",
                )
            holding.asset_id = asset_id

        if quantity is not None:
            holding.quantity = quantity
        if avg_buy_price is not None:
            holding.avg_buy_price = avg_buy_price

        db.commit()
        db.refresh(holding)
        logger.info(f"Updated holding {holding_id} for user {user_id}")
        return holding

    def delete_holding(self, db: Session, user_id: int, holding_id: int) -> None:
        """
        Delete a holding.

        Raises:
            HoldingNotFoundError: Missing, or owned by someone else
        """
        holding = self.get_owned_holding(db, user_id, holding_id)
        db.delete(holding)
        db.commit()
        logger.info(f"Deleted holding {holding_id} for user {user_id}")

    @staticmethod
    def _validate_amounts(quantity: Decimal, avg_buy_price: Decimal) -> None:
        if quantity <= 0:
            raise ValidationError(f"Quantity must be positive, got {quantity}", field="quantity")
        if avg_buy_price <= 0:
            raise ValidationError(
                f"Average buy price must be positive, got {avg_buy_price}",
                field="avg_buy_price",
            )
