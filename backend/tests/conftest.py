# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- A stub FX rate service with fixed rates (no network)
- A stub quote source with fixed asset quotes (no network)
- An API client wired to the test database and the stub services
- Sample data factories
"""

import os

# Must be set before fintrack.config is imported anywhere
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fintrack.models import (
    Asset,
    AssetType,
    Base,
    Holding,
    Portfolio,
    User,
)
from fintrack.services.constants import FALLBACK_CURRENCY, REPORTING_CURRENCY
from fintrack.services.exceptions import FXRateNotFoundError
from fintrack.services.fx.service import FxRateService
from fintrack.services.market_data import PriceQuote, YahooQuoteSource


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# STUB FX RATE SERVICE
# =============================================================================

class StubFxRateService(FxRateService):
    """
    FxRateService with fixed rates for testing.

    The public lookups are answered from a dict; build_rate_table is the
    real implementation, so the concurrent fan-out is exercised too.
    Currencies missing from the dict raise FXRateNotFoundError.
    """

    def __init__(
            self,
            rates: dict[str, Decimal] | None = None,
            usd_rate: Decimal = Decimal("0.85"),
    ):
        super().__init__(max_workers=4)
        self.rates = {code.upper(): rate for code, rate in (rates or {}).items()}
        self.usd_rate = usd_rate
        self.lookups: list[str] = []

    def get_usd_to_eur_rate(self) -> Decimal:
        return self.usd_rate

    def get_to_eur_rate(self, currency: str) -> Decimal:
        code = currency.strip().upper()
        self.lookups.append(code)
        if code == REPORTING_CURRENCY:
            return Decimal("1")
        if code == FALLBACK_CURRENCY:
            return self.usd_rate
        if code not in self.rates:
            raise FXRateNotFoundError(code, REPORTING_CURRENCY)
        return self.rates[code]

    def get_eur_rates(self) -> dict[str, Decimal]:
        return {
            REPORTING_CURRENCY: Decimal("1"),
            FALLBACK_CURRENCY: self.usd_rate,
            **self.rates,
        }


@pytest.fixture
def stub_fx() -> StubFxRateService:
    """Stub FX service: USD 0.85, GBP 1.17."""
    return StubFxRateService(rates={"GBP": Decimal("1.17")}, usd_rate=Decimal("0.85"))


# =============================================================================
# STUB QUOTE SOURCE
# =============================================================================

class StubQuoteSource(YahooQuoteSource):
    """
    YahooQuoteSource answering from a dict keyed by stored symbol.

    A value that is an exception is raised instead of returned; symbols
    missing from the dict have no quote. Retries are disabled.
    """

    MAX_RETRY_ATTEMPTS = 1

    def __init__(self, quotes: dict[str, PriceQuote | Exception] | None = None):
        super().__init__()
        self.quotes = dict(quotes or {})
        self.requests: list[tuple[str, AssetType]] = []

    def _fetch_quote(self, symbol: str, asset_type: AssetType) -> PriceQuote | None:
        self.requests.append((symbol, asset_type))
        answer = self.quotes.get(symbol)
        if isinstance(answer, Exception):
            raise answer
        return answer


def make_quote(
        symbol: str,
        price: str,
        previous_close: str | None = None,
        currency: str | None = "USD",
) -> PriceQuote:
    """Build a PriceQuote from strings; change_percent follows from the prices."""
    price_dec = Decimal(price)
    previous = Decimal(previous_close) if previous_close is not None else None
    change = None
    if previous is not None:
        change = ((price_dec - previous) / previous * 100).quantize(Decimal("0.01"))
    return PriceQuote(
        symbol=symbol,
        price=price_dec,
        previous_close=previous,
        change_percent=change,
        currency=currency,
    )


@pytest.fixture
def stub_quotes() -> StubQuoteSource:
    """Stub quote source: AAPL 190.50 USD (previous close 187.25)."""
    return StubQuoteSource(quotes={"AAPL": make_quote("AAPL", "190.50", "187.25")})


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture(scope="function")
def client(
        db: Session,
        stub_fx: StubFxRateService,
        stub_quotes: StubQuoteSource,
) -> Iterator[TestClient]:
    """
    TestClient with the database and service singletons overridden.

    Rate limiting is disabled so tests can call endpoints freely.
    """
    from fintrack.database import get_db
    from fintrack.dependencies import (
        get_asset_service,
        get_calibration_service,
        get_fx_rate_service,
        get_portfolio_service,
    )
    from fintrack.main import app
    from fintrack.middleware.rate_limit import limiter
    from fintrack.services.asset_service import AssetService
    from fintrack.services.calibration_service import CalibrationService
    from fintrack.services.portfolio_service import PortfolioService

    portfolio_service = PortfolioService(fx_service=stub_fx)
    calibration_service = CalibrationService(portfolio_service=portfolio_service)
    asset_service = AssetService(quote_source=stub_quotes, max_workers=2)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_fx_rate_service] = lambda: stub_fx
    app.dependency_overrides[get_portfolio_service] = lambda: portfolio_service
    app.dependency_overrides[get_calibration_service] = lambda: calibration_service
    app.dependency_overrides[get_asset_service] = lambda: asset_service
    limiter.enabled = False

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    limiter.enabled = True


def get_auth_headers(user: User) -> dict[str, str]:
    """Get authorization headers with a JWT access token for a user."""
    from fintrack.services.auth.jwt_handler import JWTHandler
    token = JWTHandler.create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_user(
        db: Session,
        email: str = "test@example.com",
        is_active: bool = True,
) -> User:
    """Factory function for creating test users."""
    user = User(
        email=email,
        hashed_password="hashed",
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_portfolio(
        db: Session,
        user: User,
        name: str = "Test Portfolio",
        description: str | None = None,
) -> Portfolio:
    """Factory function for creating test portfolios."""
    portfolio = Portfolio(
        user_id=user.id,
        name=name,
        description=description,
    )
    db.add(portfolio)
    db.commit()
    db.refresh(portfolio)
    return portfolio


def create_asset(
        db: Session,
        symbol: str = "SAP.DE",
        name: str | None = None,
        currency: str = "EUR",
        current_price: Decimal | None = Decimal("100"),
        previous_close: Decimal | None = None,
        asset_type: AssetType = AssetType.STOCK,
) -> Asset:
    """Factory function for creating test assets."""
    asset = Asset(
        symbol=symbol,
        name=name or symbol,
        type=asset_type,
        currency=currency,
        current_price=current_price,
        previous_close=previous_close,
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def create_holding(
        db: Session,
        portfolio: Portfolio,
        asset: Asset,
        quantity: Decimal = Decimal("10"),
        avg_buy_price: Decimal = Decimal("100"),
) -> Holding:
    """Factory function for creating test holdings (avg_buy_price in EUR)."""
    holding = Holding(
        portfolio_id=portfolio.id,
        asset_id=asset.id,
        quantity=quantity,
        avg_buy_price=avg_buy_price,
    )
    db.add(holding)
    db.commit()
    db.refresh(holding)
    return holding
