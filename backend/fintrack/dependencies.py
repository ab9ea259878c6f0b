# backend/fintrack/dependencies.py
"""
Dependency injection module for FastAPI services.

Provides singleton service instances shared across all requests, so the FX
rate caches and the per-user calibration locks are common to the whole
process. Services are lazily initialized on first use to avoid import-time
side effects (no network access until the first valuation).

Usage in routers:
    from fintrack.dependencies import (
        get_portfolio_service,
        get_current_user,
        get_portfolio_with_owner_check,
    )

    @router.get("/{portfolio_id}/performance")
    def get_performance(
        portfolio: Portfolio = Depends(get_portfolio_with_owner_check),
        service: PortfolioService = Depends(get_portfolio_service),
    ):
        ...
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fintrack.config import settings
from fintrack.database import get_db
from fintrack.models import Portfolio, User
from fintrack.services.asset_service import AssetService
from fintrack.services.auth.jwt_handler import JWTHandler
from fintrack.services.calibration_service import CalibrationService
from fintrack.services.exceptions import InvalidCredentialsError, TokenExpiredError
from fintrack.services.fx.service import FxRateService
from fintrack.services.holdings import HoldingService, HoldingsRepository
from fintrack.services.market_data import YahooQuoteSource
from fintrack.services.portfolio_service import PortfolioService
from fintrack.services.user_settings_service import UserSettingsStore
from fintrack.services.valuation import ValuationEngine

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_fx_rate_service, get_valuation_engine, get_settings_store,
#    get_asset_service (no deps)
# 2. get_portfolio_service (fx service, engine, store)
# 3. get_calibration_service (portfolio service, store)


@lru_cache(maxsize=1)
def get_fx_rate_service() -> FxRateService:
    """Singleton FxRateService; owns the ECB and quote caches."""
    logger.debug("Initializing singleton FxRateService")
    return FxRateService()


@lru_cache(maxsize=1)
def get_valuation_engine() -> ValuationEngine:
    return ValuationEngine()


@lru_cache(maxsize=1)
def get_settings_store() -> UserSettingsStore:
    return UserSettingsStore()


@lru_cache(maxsize=1)
def get_holding_service() -> HoldingService:
    return HoldingService()


@lru_cache(maxsize=1)
def get_asset_service() -> AssetService:
    """Singleton AssetService; price refreshes share its quote source."""
    return AssetService(
        quote_source=YahooQuoteSource(timeout=settings.fx_request_timeout_seconds),
    )


@lru_cache(maxsize=1)
def get_portfolio_service() -> PortfolioService:
    """
    Singleton PortfolioService.

    Every valuation (portfolio detail, holdings listing, calibration) goes
    through this instance, so all call sites share one engine and FX cache.
    """
    logger.debug("Initializing singleton PortfolioService")
    return PortfolioService(
        fx_service=get_fx_rate_service(),
        engine=get_valuation_engine(),
        repository=HoldingsRepository(),
        settings_store=get_settings_store(),
    )


@lru_cache(maxsize=1)
def get_calibration_service() -> CalibrationService:
    """Singleton CalibrationService; its per-user locks must be process-wide."""
    logger.debug("Initializing singleton CalibrationService")
    return CalibrationService(
        portfolio_service=get_portfolio_service(),
        settings_store=get_settings_store(),
    )


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    Extract and validate the current user from the bearer token.

    Raises:
        HTTPException 401: Missing, invalid or expired token, or the user
            does not exist or is inactive
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = JWTHandler.validate_access_token(credentials.credentials)
        user_id = int(payload["sub"])
    except TokenExpiredError:
        raise _unauthorized("Token has expired")
    except InvalidCredentialsError as e:
        raise _unauthorized(str(e))

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise _unauthorized("User account is inactive")

    return user


def get_portfolio_with_owner_check(
    portfolio_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> Portfolio:
    """
    Fetch a portfolio owned by the current user.

    Portfolios of other users are reported as missing, so their existence
    is not disclosed.

    Raises:
        HTTPException 404: Portfolio not found or not owned
    """
    portfolio = db.get(Portfolio, portfolio_id)

    if portfolio is None or portfolio.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Portfolio {portfolio_id} not found",
        )

    return portfolio

