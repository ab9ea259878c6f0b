# backend/fintrack/routers/holdings.py
"""
Holding endpoints.

- GET    /portfolios/{id}/holdings   - Holdings valued in EUR
- POST   /portfolios/{id}/holdings   - Add (or overwrite) a holding
- PUT    /holdings/{id}              - Partial update
- DELETE /holdings/{id}              - Remove a holding

Holdings of other users are reported as 404.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from fintrack.database import get_db
from fintrack.dependencies import (
    get_current_user,
    get_holding_service,
    get_portfolio_service,
    get_portfolio_with_owner_check,
)
from fintrack.middleware.rate_limit import RATE_LIMIT_DEFAULT, RATE_LIMIT_WRITE, limiter
from fintrack.models import Holding, Portfolio, User
from fintrack.schemas.holdings import HoldingCreate, HoldingResponse, HoldingUpdate
from fintrack.schemas.performance import HoldingPerformanceResponse
from fintrack.services.holdings import HoldingService
from fintrack.services.portfolio_service import PortfolioService

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    tags=["Holdings"],
)


# =============================================================================
# PORTFOLIO-SCOPED ENDPOINTS
# =============================================================================

@router.get(
    "/portfolios/{portfolio_id}/holdings",
    response_model=list[HoldingPerformanceResponse],
    summary="List holdings with valuation",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_holdings(
        request: Request,  # Required for rate limiting
        portfolio: Portfolio = Depends(get_portfolio_with_owner_check),
        db: Session = Depends(get_db),
        service: PortfolioService = Depends(get_portfolio_service),
) -> list[HoldingPerformanceResponse]:
    """Holdings in insertion order, with EUR value, P&L and weight."""
    performance = service.calculate_performance(db, portfolio)
    return [HoldingPerformanceResponse.model_validate(h) for h in performance.holdings]


@router.post(
    "/portfolios/{portfolio_id}/holdings",
    response_model=HoldingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a holding",
)
@limiter.limit(RATE_LIMIT_WRITE)
def add_holding(
        request: Request,  # Required for rate limiting
        payload: HoldingCreate,
        portfolio: Portfolio = Depends(get_portfolio_with_owner_check),
        db: Session = Depends(get_db),
        service: HoldingService = Depends(get_holding_service),
) -> Holding:
    """
    Add an asset to the portfolio. If the portfolio already holds the
    asset, its quantity and average buy price are replaced.

    Raises **404** if the asset does not exist.
    """
    result = service.upsert_holding(
        db,
        portfolio_id=portfolio.id,
        asset_id=payload.asset_id,
        quantity=payload.quantity,
        avg_buy_price=payload.avg_buy_price,
    )
    return result.holding


# =============================================================================
# HOLDING ENDPOINTS
# =============================================================================

@router.put(
    "/holdings/{holding_id}",
    response_model=HoldingResponse,
    summary="Update a holding",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_holding(
        request: Request,  # Required for rate limiting
        holding_id: int,
        payload: HoldingUpdate,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: HoldingService = Depends(get_holding_service),
) -> Holding:
    return service.update_holding(
        db,
        user_id=current_user.id,
        holding_id=holding_id,
        asset_id=payload.asset_id,
        quantity=payload.quantity,
        avg_buy_price=payload.avg_buy_price,
    )


@router.delete(
    "/holdings/{holding_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a holding",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_holding(
        request: Request,  # Required for rate limiting
        holding_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: HoldingService = Depends(get_holding_service),
) -> Response:
    service.delete_holding(db, user_id=current_user.id, holding_id=holding_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
