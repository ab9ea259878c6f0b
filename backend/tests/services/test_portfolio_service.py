# backend/tests/services/test_portfolio_service.py
"""
Tests for the PortfolioService.

This module tests:
- Portfolio listing, creation and ownership checks
- Default portfolio selection
- calculate_performance wiring (holdings, FX table, persisted factor)
"""

from decimal import Decimal

import pytest

from fintrack.services.exceptions import PortfolioNotFoundError
from fintrack.services.portfolio_service import PortfolioService
from fintrack.services.user_settings_service import UserSettingsStore
from tests.conftest import (
    create_asset,
    create_holding,
    create_portfolio,
    create_user,
)


@pytest.fixture
def service(stub_fx) -> PortfolioService:
    return PortfolioService(fx_service=stub_fx)


# =============================================================================
# PORTFOLIO ACCESS
# =============================================================================

class TestPortfolioAccess:
    """Tests for listing, creating and fetching portfolios."""

    def test_create_portfolio(self, db, service):
        user = create_user(db)

        portfolio = service.create_portfolio(db, user.id, "Long Term", "ETFs only")

        assert portfolio.id is not None
        assert portfolio.user_id == user.id
        assert portfolio.description == "ETFs only"

    def test_list_only_own_portfolios_newest_first(self, db, service):
        user = create_user(db)
        other = create_user(db, email="other@example.com")
        first = create_portfolio(db, user, name="First")
        second = create_portfolio(db, user, name="Second")
        create_portfolio(db, other, name="Not mine")

        portfolios = service.list_portfolios(db, user.id)

        assert [p.id for p in portfolios] == [second.id, first.id]

    def test_get_owned_portfolio(self, db, service):
        user = create_user(db)
        portfolio = create_portfolio(db, user)

        assert service.get_owned_portfolio(db, user.id, portfolio.id).id == portfolio.id

    def test_other_users_portfolio_is_not_found(self, db, service):
        owner = create_user(db)
        intruder = create_user(db, email="intruder@example.com")
        portfolio = create_portfolio(db, owner)

        with pytest.raises(PortfolioNotFoundError) as exc_info:
            service.get_owned_portfolio(db, intruder.id, portfolio.id)

        assert exc_info.value.portfolio_id == portfolio.id

    def test_missing_portfolio_is_not_found(self, db, service):
        user = create_user(db)

        with pytest.raises(PortfolioNotFoundError):
            service.get_owned_portfolio(db, user.id, 999)

    def test_default_portfolio_is_oldest(self, db, service):
        user = create_user(db)
        oldest = create_portfolio(db, user, name="Oldest")
        create_portfolio(db, user, name="Newer")

        assert service.get_default_portfolio(db, user.id).id == oldest.id

    def test_no_default_portfolio(self, db, service):
        user = create_user(db)

        with pytest.raises(PortfolioNotFoundError) as exc_info:
            service.get_default_portfolio(db, user.id)

        assert exc_info.value.portfolio_id is None


# =============================================================================
# PERFORMANCE
# =============================================================================

class TestCalculatePerformance:
    """Tests for calculate_performance."""

    def test_mixed_portfolio(self, db, service):
        user = create_user(db)
        portfolio = create_portfolio(db, user)
        sap = create_asset(db, symbol="SAP.DE", currency="EUR", current_price=Decimal("120"))
        aapl = create_asset(db, symbol="AAPL", currency="USD", current_price=Decimal("100"))
        create_holding(db, portfolio, sap, Decimal("10"), Decimal("100"))
        create_holding(db, portfolio, aapl, Decimal("5"), Decimal("50"))

        performance = service.calculate_performance(db, portfolio)

        assert performance.total_value_eur == Decimal("1625.00")
        assert performance.total_cost_eur == Decimal("1250.00")
        assert [h.symbol for h in performance.holdings] == ["SAP.DE", "AAPL"]

    def test_uses_persisted_factor(self, db, service):
        user = create_user(db)
        portfolio = create_portfolio(db, user)
        sap = create_asset(db, current_price=Decimal("120"))
        create_holding(db, portfolio, sap, Decimal("10"), Decimal("100"))
        UserSettingsStore().upsert(db, user.id, eur_price_adjustment_factor=Decimal("1.1"))

        performance = service.calculate_performance(db, portfolio)

        assert performance.eur_adjustment_factor == Decimal("1.1")
        assert performance.total_value_eur == Decimal("1320.00")

    def test_factor_override_ignores_persisted_factor(self, db, service):
        user = create_user(db)
        portfolio = create_portfolio(db, user)
        sap = create_asset(db, current_price=Decimal("120"))
        create_holding(db, portfolio, sap, Decimal("10"), Decimal("100"))
        UserSettingsStore().upsert(db, user.id, eur_price_adjustment_factor=Decimal("1.1"))

        performance = service.calculate_performance(db, portfolio, eur_adjustment_factor=Decimal("1"))

        assert performance.total_value_eur == Decimal("1200.00")

    def test_empty_portfolio_skips_fx(self, db, service, stub_fx):
        user = create_user(db)
        portfolio = create_portfolio(db, user)

        performance = service.calculate_performance(db, portfolio)

        assert performance.holding_count == 0
        assert performance.total_value_eur == Decimal("0")
        assert performance.eur_rate == Decimal("1")
        assert stub_fx.lookups == []

    def test_unresolved_currency_uses_usd_rate(self, db, service):
        user = create_user(db)
        portfolio = create_portfolio(db, user)
        chf = create_asset(db, symbol="NESN.SW", currency="CHF", current_price=Decimal("100"))
        create_holding(db, portfolio, chf, Decimal("1"), Decimal("80"))

        performance = service.calculate_performance(db, portfolio)

        assert performance.holdings[0].eur_rate == Decimal("0.85")
        assert performance.total_value_eur == Decimal("85.00")

    def test_looks_up_each_foreign_currency_once(self, db, service, stub_fx):
        user = create_user(db)
        portfolio = create_portfolio(db, user)
        for symbol in ("BP.L", "HSBA.L"):
            asset = create_asset(db, symbol=symbol, currency="GBP", current_price=Decimal("5"))
            create_holding(db, portfolio, asset, Decimal("1"), Decimal("5"))

        service.calculate_performance(db, portfolio)

        assert stub_fx.lookups == ["GBP"]
