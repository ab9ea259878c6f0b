# backend/fintrack/routers/assets.py
"""
Asset registry endpoints.

- GET  /assets                - List assets (filter by type, search)
- POST /assets                - Import a symbol (201 new, 200 existing)
- GET  /assets/{id}           - Asset with its latest prices
- POST /assets/refresh-prices - Re-fetch prices from Yahoo Finance

Assets are shared by all users; any authenticated user may import or
refresh them.
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from fintrack.database import get_db
from fintrack.dependencies import get_asset_service, get_current_user
from fintrack.middleware.rate_limit import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_PRICE_REFRESH,
    RATE_LIMIT_WRITE,
    limiter,
)
from fintrack.models import Asset, AssetType, User
from fintrack.schemas.assets import (
    AssetImport,
    AssetListResponse,
    AssetResponse,
    PriceRefreshRequest,
    PriceRefreshResponse,
)
from fintrack.services.asset_service import AssetService

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/assets",
    tags=["Assets"],
)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=AssetListResponse,
    summary="List assets",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_assets(
        request: Request,  # Required for rate limiting
        asset_type: AssetType | None = Query(default=None),
        search: str | None = Query(default=None, max_length=100),
        skip: int = Query(default=0, ge=0),
        limit: int = Query(default=100, ge=1, le=500),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: AssetService = Depends(get_asset_service),
) -> AssetListResponse:
    """Assets ordered by symbol. `search` matches symbol or name."""
    assets, total = service.list_assets(
        db, asset_type=asset_type, search=search, skip=skip, limit=limit
    )
    return AssetListResponse(
        items=[AssetResponse.model_validate(a) for a in assets],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post(
    "",
    response_model=AssetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Import an asset",
    responses={200: {"description": "Symbol already registered", "model": AssetResponse}},
)
@limiter.limit(RATE_LIMIT_WRITE)
def import_asset(
        request: Request,  # Required for rate limiting
        payload: AssetImport,
        response: Response,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: AssetService = Depends(get_asset_service),
) -> Asset:
    """
    Register a symbol and seed its prices from Yahoo Finance.

    If the symbol is already registered the existing asset is returned
    with **200**. If Yahoo Finance is unavailable the asset is created
    without prices.
    """
    result = service.import_asset(
        db,
        symbol=payload.symbol,
        name=payload.name,
        asset_type=payload.asset_type,
        currency=payload.currency,
    )
    if not result.was_created:
        response.status_code = status.HTTP_200_OK
    return result.asset


@router.post(
    "/refresh-prices",
    response_model=PriceRefreshResponse,
    summary="Refresh asset prices",
)
@limiter.limit(RATE_LIMIT_PRICE_REFRESH)
def refresh_prices(
        request: Request,  # Required for rate limiting
        payload: PriceRefreshRequest | None = None,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: AssetService = Depends(get_asset_service),
) -> PriceRefreshResponse:
    """
    Fetch the latest price and previous close of every asset (or of
    `asset_ids`). Assets without a quote keep their prices and are listed
    in `errors`.
    """
    asset_ids = payload.asset_ids if payload else None
    result = service.refresh_prices(db, asset_ids=asset_ids)
    return PriceRefreshResponse(
        message=f"Refreshed {result.updated} assets",
        updated=result.updated,
        errors=result.errors,
    )


@router.get(
    "/{asset_id}",
    response_model=AssetResponse,
    summary="Get an asset",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_asset(
        request: Request,  # Required for rate limiting
        asset_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: AssetService = Depends(get_asset_service),
) -> Asset:
    """Raises **404** if the asset does not exist."""
    return service.get_asset(db, asset_id)
