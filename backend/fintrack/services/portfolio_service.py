# backend/fintrack/services/portfolio_service.py
"""
Portfolio Service - ownership, CRUD and performance orchestration.

calculate_performance() is the single entry point every caller uses to
value a portfolio (portfolio detail, holdings listing, calibration), so all
of them see identical numbers:

    HoldingsRepository -> HoldingInput list
    FxRateService      -> FxRateTable (concurrent per-currency lookups)
    UserSettingsStore  -> EUR adjustment factor (unless overridden)
    ValuationEngine    -> PortfolioPerformance
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from fintrack.models import Portfolio
from fintrack.services.exceptions import PortfolioNotFoundError
from fintrack.services.fx.service import FxRateService
from fintrack.services.holdings import HoldingsRepository
from fintrack.services.user_settings_service import UserSettingsStore
from fintrack.services.valuation import (
    FxRateTable,
    PortfolioPerformance,
    ValuationEngine,
)

logger = logging.getLogger(__name__)


class PortfolioService:
    """
    Portfolio access and valuation.

    Dependencies are injected so tests can substitute an FX service that
    never touches the network.
    """

    def __init__(
            self,
            fx_service: FxRateService,
            engine: ValuationEngine | None = None,
            repository: HoldingsRepository | None = None,
            settings_store: UserSettingsStore | None = None,
    ) -> None:
        self._fx_service = fx_service
        self._engine = engine or ValuationEngine()
        self._repository = repository or HoldingsRepository()
        self._settings_store = settings_store or UserSettingsStore()
        logger.info("PortfolioService initialized")

    # =========================================================================
    # PORTFOLIOS
    # =========================================================================

    def list_portfolios(self, db: Session, user_id: int) -> list[Portfolio]:
        """User's portfolios, newest first."""
        return list(db.scalars(
            select(Portfolio)
            .where(Portfolio.user_id == user_id)
            .order_by(Portfolio.created_at.desc(), Portfolio.id.desc())
        ).all())

    def create_portfolio(
            self,
            db: Session,
            user_id: int,
            name: str,
            description: str | None = None,
    ) -> Portfolio:
        portfolio = Portfolio(user_id=user_id, name=name, description=description)
        db.add(portfolio)
        db.commit()
        db.refresh(portfolio)
        logger.info(f"Created portfolio {portfolio.id} for user {user_id}")
        return portfolio

    def get_owned_portfolio(self, db: Session, user_id: int, portfolio_id: int) -> Portfolio:
        """
        Fetch a portfolio owned by the user.

        Raises:
            PortfolioNotFoundError: Missing, or owned by someone else
        """
        portfolio = db.get(Portfolio, portfolio_id)
        if portfolio is None or portfolio.user_id != user_id:
            raise PortfolioNotFoundError(portfolio_id)
        return portfolio

    def get_default_portfolio(self, db: Session, user_id: int) -> Portfolio:
        """
        The user's oldest portfolio.

        Raises:
            PortfolioNotFoundError: The user has no portfolio
        """
        portfolio = db.scalar(
            select(Portfolio)
            .where(Portfolio.user_id == user_id)
            .order_by(Portfolio.created_at.asc(), Portfolio.id.asc())
            .limit(1)
        )
        if portfolio is None:
            raise PortfolioNotFoundError(None)
        return portfolio

    # =========================================================================
    # PERFORMANCE
    # =========================================================================

    def calculate_performance(
            self,
            db: Session,
            portfolio: Portfolio,
            eur_adjustment_factor: Decimal | None = None,
    ) -> PortfolioPerformance:
        """
        Value a portfolio in EUR.

        Args:
            portfolio: Portfolio to value (ownership already verified)
            eur_adjustment_factor: Factor override. None uses the owner's
                persisted factor; calibration passes 1.0 to measure the
                unadjusted value without touching stored settings.

        Returns:
            PortfolioPerformance (canonical zero aggregate when empty;
            no FX lookups happen in that case)
        """
        factor = eur_adjustment_factor
        if factor is None:
            factor = self._settings_store.get_adjustment_factor(db, portfolio.user_id)

        holdings = self._repository.get_holdings_for_portfolio(db, portfolio.id)
        if not holdings:
            return self._engine.evaluate([], FxRateTable.identity(), factor)

        fx_table = self._fx_service.build_rate_table(h.currency for h in holdings)
        performance = self._engine.evaluate(holdings, fx_table, factor)

        logger.info(
            f"Portfolio {portfolio.id} valued: {performance.total_value_eur} EUR "
            f"({performance.holding_count} holdings, factor={factor})"
        )
        return performance
