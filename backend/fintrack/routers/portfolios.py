# backend/fintrack/routers/portfolios.py
"""
Portfolio endpoints.

- GET  /portfolios                          - List your portfolios
- POST /portfolios                          - Create a portfolio
- GET  /portfolios/{id}                     - Portfolio with performance
- GET  /portfolios/{id}/performance         - Performance only

Every valuation goes through PortfolioService.calculate_performance, the
same path used by the holdings listing and by calibration.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from fintrack.database import get_db
from fintrack.dependencies import (
    get_current_user,
    get_portfolio_service,
    get_portfolio_with_owner_check,
)
from fintrack.middleware.rate_limit import RATE_LIMIT_DEFAULT, RATE_LIMIT_WRITE, limiter
from fintrack.models import Portfolio, User
from fintrack.schemas.performance import PortfolioPerformanceResponse
from fintrack.schemas.portfolios import (
    PortfolioCreate,
    PortfolioDetailResponse,
    PortfolioResponse,
)
from fintrack.services.portfolio_service import PortfolioService

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/portfolios",
    tags=["Portfolios"],
)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=list[PortfolioResponse],
    summary="List your portfolios",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_portfolios(
        request: Request,  # Required for rate limiting
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: PortfolioService = Depends(get_portfolio_service),
) -> list[Portfolio]:
    """Portfolios of the authenticated user, newest first."""
    return service.list_portfolios(db, current_user.id)


@router.post(
    "",
    response_model=PortfolioResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a portfolio",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_portfolio(
        request: Request,  # Required for rate limiting
        payload: PortfolioCreate,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: PortfolioService = Depends(get_portfolio_service),
) -> Portfolio:
    return service.create_portfolio(
        db,
        user_id=current_user.id,
        name=payload.name,
        description=payload.description,
    )


@router.get(
    "/{portfolio_id}",
    response_model=PortfolioDetailResponse,
    summary="Get a portfolio with its performance",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_portfolio(
        request: Request,  # Required for rate limiting
        portfolio: Portfolio = Depends(get_portfolio_with_owner_check),
        db: Session = Depends(get_db),
        service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioDetailResponse:
    """
    Portfolio details plus its EUR valuation, using your calibration factor.

    Raises **404** if the portfolio does not exist or is not yours.
    """
    performance = service.calculate_performance(db, portfolio)
    return PortfolioDetailResponse(
        id=portfolio.id,
        user_id=portfolio.user_id,
        name=portfolio.name,
        description=portfolio.description,
        created_at=portfolio.created_at,
        updated_at=portfolio.updated_at,
        performance=PortfolioPerformanceResponse.model_validate(performance),
    )


@router.get(
    "/{portfolio_id}/performance",
    response_model=PortfolioPerformanceResponse,
    summary="Get portfolio performance",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_portfolio_performance(
        request: Request,  # Required for rate limiting
        portfolio: Portfolio = Depends(get_portfolio_with_owner_check),
        db: Session = Depends(get_db),
        service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioPerformanceResponse:
    """
    Aggregate and per-holding EUR figures.

    An empty portfolio returns all-zero totals with eur_rate 1.
    """
    performance = service.calculate_performance(db, portfolio)
    return PortfolioPerformanceResponse.model_validate(performance)
