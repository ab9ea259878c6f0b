# backend/fintrack/routers/calibration.py
"""
EUR calibration endpoints.

Portfolio calibration:
- POST   /calibration/set-reference   - Anchor a portfolio to a reference value
- GET    /calibration/status          - Current factor and reference
- DELETE /calibration/reset           - Back to factor 1.0

Per-asset calibration (stored, not applied to valuations):
- GET    /calibration/assets
- PUT    /calibration/assets/{asset_id}
- DELETE /calibration/assets/{asset_id}
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from fintrack.database import get_db
from fintrack.dependencies import get_calibration_service, get_current_user
from fintrack.middleware.rate_limit import (
    RATE_LIMIT_CALIBRATION,
    RATE_LIMIT_DEFAULT,
    limiter,
)
from fintrack.models import User
from fintrack.schemas.calibration import (
    AssetCalibrationRequest,
    AssetCalibrationResponse,
    CalibrationResponse,
    CalibrationStatusResponse,
    SetReferenceRequest,
)
from fintrack.services.calibration_service import CalibrationService

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/calibration",
    tags=["Calibration"],
)


# =============================================================================
# PORTFOLIO CALIBRATION
# =============================================================================

@router.post(
    "/set-reference",
    response_model=CalibrationResponse,
    summary="Calibrate EUR values against a reference",
)
@limiter.limit(RATE_LIMIT_CALIBRATION)
def set_reference(
        request: Request,  # Required for rate limiting
        payload: SetReferenceRequest,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: CalibrationService = Depends(get_calibration_service),
) -> CalibrationResponse:
    """
    Compute and store the factor that makes the portfolio's EUR value equal
    **reference_value**. The factor applies to EUR-denominated assets only.

    Raises **404** if the portfolio is missing or not yours (or you have no
    portfolio), **400** if the portfolio has no value to calibrate.
    """
    result = service.set_reference(
        db,
        user_id=current_user.id,
        reference_value=payload.reference_value,
        portfolio_id=payload.portfolio_id,
    )
    return CalibrationResponse(
        portfolio_id=result.portfolio_id,
        reference_value=result.reference_value,
        calculated_value=result.calculated_value,
        adjustment_factor=result.adjustment_factor,
        adjustment_percent=result.adjustment_percent,
        last_calibration_at=result.last_calibration_at,
        message=f"Calibration saved: EUR prices adjusted by {result.adjustment_percent}",
    )


@router.get(
    "/status",
    response_model=CalibrationStatusResponse,
    summary="Get calibration status",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_status(
        request: Request,  # Required for rate limiting
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: CalibrationService = Depends(get_calibration_service),
) -> CalibrationStatusResponse:
    return CalibrationStatusResponse.model_validate(service.status(db, current_user.id))


@router.delete(
    "/reset",
    response_model=CalibrationStatusResponse,
    summary="Reset calibration",
)
@limiter.limit(RATE_LIMIT_CALIBRATION)
def reset_calibration(
        request: Request,  # Required for rate limiting
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: CalibrationService = Depends(get_calibration_service),
) -> CalibrationStatusResponse:
    """Set the factor back to 1.0 and clear the reference. Safe to repeat."""
    return CalibrationStatusResponse.model_validate(service.reset(db, current_user.id))


# =============================================================================
# PER-ASSET CALIBRATION
# =============================================================================

@router.get(
    "/assets",
    response_model=list[AssetCalibrationResponse],
    summary="List asset calibrations",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_asset_calibrations(
        request: Request,  # Required for rate limiting
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: CalibrationService = Depends(get_calibration_service),
) -> list[AssetCalibrationResponse]:
    return [
        AssetCalibrationResponse.model_validate(c)
        for c in service.list_asset_calibrations(db, current_user.id)
    ]


@router.put(
    "/assets/{asset_id}",
    response_model=AssetCalibrationResponse,
    summary="Calibrate one asset",
)
@limiter.limit(RATE_LIMIT_CALIBRATION)
def set_asset_calibration(
        request: Request,  # Required for rate limiting
        asset_id: int,
        payload: AssetCalibrationRequest,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: CalibrationService = Depends(get_calibration_service),
) -> AssetCalibrationResponse:
    """
    Store reference_price / current_price for the asset.

    Raises **404** for an unknown asset, **400** if it has no current price.
    """
    result = service.set_asset_calibration(
        db,
        user_id=current_user.id,
        asset_id=asset_id,
        reference_price=payload.reference_price,
    )
    return AssetCalibrationResponse.model_validate(result)


@router.delete(
    "/assets/{asset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove an asset calibration",
)
@limiter.limit(RATE_LIMIT_CALIBRATION)
def reset_asset_calibration(
        request: Request,  # Required for rate limiting
        asset_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: CalibrationService = Depends(get_calibration_service),
) -> Response:
    service.reset_asset_calibration(db, user_id=current_user.id, asset_id=asset_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
