# backend/fintrack/routers/fx.py
"""
FX rate endpoint.

- GET /fx/rates - Current currency -> EUR rates (ECB reference, USD fallback)
"""

from fastapi import APIRouter, Depends, Request

from fintrack.dependencies import get_current_user, get_fx_rate_service
from fintrack.middleware.rate_limit import RATE_LIMIT_DEFAULT, limiter
from fintrack.models import User
from fintrack.schemas.exchange_rates import FxRatesResponse
from fintrack.services.constants import REPORTING_CURRENCY
from fintrack.services.fx.service import FxRateService

router = APIRouter(
    prefix="/fx",
    tags=["FX Rates"],
)


@router.get(
    "/rates",
    response_model=FxRatesResponse,
    summary="Current EUR rates",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_rates(
        request: Request,  # Required for rate limiting
        current_user: User = Depends(get_current_user),
        service: FxRateService = Depends(get_fx_rate_service),
) -> FxRatesResponse:
    """
    Rates used to convert native prices to EUR. When the ECB feed is
    unreachable only EUR and the USD rate are returned.
    """
    rates = service.get_eur_rates()
    return FxRatesResponse(
        base_currency=REPORTING_CURRENCY,
        usd_rate=service.get_usd_to_eur_rate(),
        rates=dict(sorted(rates.items())),
    )
