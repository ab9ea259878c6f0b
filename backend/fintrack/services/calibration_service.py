# backend/fintrack/services/calibration_service.py
"""
Calibration Service - anchors computed EUR values to a trusted reference.

A user supplies the EUR value their broker shows for a portfolio. The
service measures the portfolio's unadjusted EUR value and stores

    adjustment_factor = reference_value / raw_value_eur

which the valuation then applies to every EUR-quoted price. Immediately
after calibrating, an all-EUR portfolio values to the reference (to the cent).

Consistency:
    The raw value is measured with an injected factor of 1.0; the stored
    factor is never overwritten with a temporary value, so concurrent
    valuations always see either the old or the new factor. Calibrations
    for the same user are serialized by an in-process lock (one of a fixed
    pool, picked by user id) and a row lock (SELECT ... FOR UPDATE) on the
    settings row when writing.

Per-asset calibration stores reference_price / current_price for a single
asset. It is kept for display and is not applied by the valuation.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from fintrack.models import Asset, AssetCalibration
from fintrack.services.constants import (
    CALIBRATION_LOCK_STRIPES,
    DEFAULT_ADJUSTMENT_FACTOR,
    FACTOR_PRECISION,
    PERCENT_PRECISION,
)
from fintrack.services.exceptions import (
    AssetNotFoundError,
    CalibrationNotPossibleError,
    ValidationError,
)
from fintrack.services.portfolio_service import PortfolioService
from fintrack.services.user_settings_service import UserSettingsStore

logger = logging.getLogger(__name__)


def format_adjustment_percent(factor: Decimal) -> str:
    """Signed deviation of a factor from 1.0, e.g. 1.108093 -> "+10.81%"."""
    percent = ((factor - Decimal("1")) * Decimal("100")).quantize(
        PERCENT_PRECISION, rounding=ROUND_HALF_UP
    )
    return f"{percent:+.2f}%"


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class CalibrationResult:
    """Outcome of anchoring a portfolio to a reference value."""

    portfolio_id: int
    reference_value: Decimal
    calculated_value: Decimal
    adjustment_factor: Decimal
    adjustment_percent: str
    last_calibration_at: datetime


@dataclass
class CalibrationStatus:
    """Current calibration state of a user."""

    calibrated: bool
    adjustment_factor: Decimal
    adjustment_percent: str
    reference_portfolio_value: Decimal | None = None
    last_calibration_at: datetime | None = None


@dataclass
class AssetCalibrationResult:
    """Stored calibration of one asset."""

    asset_id: int
    symbol: str
    currency: str
    reference_price: Decimal | None
    current_price: Decimal | None
    adjustment_factor: Decimal
    adjustment_percent: str
    updated_at: datetime


# =============================================================================
# SERVICE
# =============================================================================

class CalibrationService:
    """
    Derives, persists and resets EUR adjustment factors.

    Shared as a singleton (see dependencies.py) so the per-user locks are
    common to all requests of this process.
    """

    def __init__(
            self,
            portfolio_service: PortfolioService,
            settings_store: UserSettingsStore | None = None,
    ) -> None:
        self._portfolio_service = portfolio_service
        self._settings_store = settings_store or UserSettingsStore()
        self._locks = tuple(threading.Lock() for _ in range(CALIBRATION_LOCK_STRIPES))
        logger.info("CalibrationService initialized")

    def _user_lock(self, user_id: int) -> threading.Lock:
        return self._locks[user_id % len(self._locks)]

    # =========================================================================
    # PORTFOLIO CALIBRATION
    # =========================================================================

    def set_reference(
            self,
            db: Session,
            user_id: int,
            reference_value: Decimal,
            portfolio_id: int | None = None,
    ) -> CalibrationResult:
        """
        Solve and store the adjustment factor for a reference EUR value.

        Args:
            user_id: Requesting user
            reference_value: Trusted EUR value of the portfolio (> 0)
            portfolio_id: Portfolio to measure; None uses the user's oldest

        Raises:
            ValidationError: reference_value <= 0
            PortfolioNotFoundError: Portfolio missing or not owned, or the
                user has no portfolio
            CalibrationNotPossibleError: The unadjusted value is 0
        """
        if reference_value <= 0:
            raise ValidationError(
                f"Reference value must be positive, got {reference_value}",
                field="reference_value",
            )

        if portfolio_id is None:
            portfolio = self._portfolio_service.get_default_portfolio(db, user_id)
        else:
            portfolio = self._portfolio_service.get_owned_portfolio(db, user_id, portfolio_id)

        with self._user_lock(user_id):
            performance = self._portfolio_service.calculate_performance(
                db, portfolio, eur_adjustment_factor=DEFAULT_ADJUSTMENT_FACTOR
            )
            raw_value_eur = performance.total_value_eur
            if raw_value_eur <= 0:
                logger.warning(
                    f"Calibration rejected for user {user_id}: "
                    f"portfolio {portfolio.id} has no value"
                )
                raise CalibrationNotPossibleError(portfolio.id, raw_value_eur)

            factor = (reference_value / raw_value_eur).quantize(
                FACTOR_PRECISION, rounding=ROUND_HALF_UP
            )
            calibrated_at = datetime.now(timezone.utc)

            self._settings_store.upsert(
                db,
                user_id,
                eur_price_adjustment_factor=factor,
                reference_portfolio_value=reference_value,
                last_calibration_at=calibrated_at,
            )

        result = CalibrationResult(
            portfolio_id=portfolio.id,
            reference_value=reference_value,
            calculated_value=raw_value_eur,
            adjustment_factor=factor,
            adjustment_percent=format_adjustment_percent(factor),
            last_calibration_at=calibrated_at,
        )
        logger.info(
            f"Calibrated user {user_id} on portfolio {portfolio.id}: "
            f"raw={raw_value_eur} EUR, reference={reference_value} EUR, "
            f"factor={factor} ({result.adjustment_percent})"
        )
        return result

    def reset(self, db: Session, user_id: int) -> CalibrationStatus:
        """Restore factor 1.0 and clear the reference. Idempotent."""
        with self._user_lock(user_id):
            result = self._settings_store.upsert(
                db,
                user_id,
                eur_price_adjustment_factor=DEFAULT_ADJUSTMENT_FACTOR,
                reference_portfolio_value=None,
                last_calibration_at=None,
            )

        if result.changed_fields:
            logger.info(f"Calibration reset for user {user_id}")
        return self._to_status(
            calibrated=False,
            factor=DEFAULT_ADJUSTMENT_FACTOR,
            reference=None,
            calibrated_at=None,
        )

    def status(self, db: Session, user_id: int) -> CalibrationStatus:
        """Read-only calibration state; uncalibrated users get factor 1.0."""
        settings = self._settings_store.get(db, user_id)
        if settings is None:
            return self._to_status(
                calibrated=False,
                factor=DEFAULT_ADJUSTMENT_FACTOR,
                reference=None,
                calibrated_at=None,
            )

        factor = settings.eur_price_adjustment_factor or DEFAULT_ADJUSTMENT_FACTOR
        return self._to_status(
            calibrated=settings.reference_portfolio_value is not None,
            factor=factor,
            reference=settings.reference_portfolio_value,
            calibrated_at=settings.last_calibration_at,
        )

    @staticmethod
    def _to_status(
            calibrated: bool,
            factor: Decimal,
            reference: Decimal | None,
            calibrated_at: datetime | None,
    ) -> CalibrationStatus:
        return CalibrationStatus(
            calibrated=calibrated,
            adjustment_factor=factor,
            adjustment_percent=format_adjustment_percent(factor),
            reference_portfolio_value=reference,
            last_calibration_at=calibrated_at,
        )

    # =========================================================================
    # PER-ASSET CALIBRATION
    # =========================================================================

    def set_asset_calibration(
            self,
            db: Session,
            user_id: int,
            asset_id: int,
            reference_price: Decimal,
    ) -> AssetCalibrationResult:
        """
        Store reference_price / current_price for one asset.

        Raises:
            ValidationError: reference_price <= 0, or the asset has no
                positive current price to compare against
            AssetNotFoundError: Unknown asset
        """
        if reference_price <= 0:
            raise ValidationError(
                f"Reference price must be positive, got {reference_price}",
                field="reference_price",
            )

        asset = db.get(Asset, asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        if asset.current_price is None or asset.current_price <= 0:
            raise ValidationError(
                f"Asset {asset.symbol} has no current price to calibrate against",
                field="current_price",
            )

        factor = (reference_price / asset.current_price).quantize(
            FACTOR_PRECISION, rounding=ROUND_HALF_UP
        )

        calibration = db.scalar(
            select(AssetCalibration)
            .where(AssetCalibration.user_id == user_id, AssetCalibration.asset_id == asset_id)
            .with_for_update()
        )
        if calibration is None:
            calibration = AssetCalibration(user_id=user_id, asset_id=asset_id)
            db.add(calibration)
        calibration.adjustment_factor = factor
        calibration.reference_price = reference_price

        db.commit()
        db.refresh(calibration)

        logger.info(
            f"Calibrated asset {asset.symbol} for user {user_id}: "
            f"reference={reference_price} {asset.currency}, factor={factor}"
        )
        return self._to_asset_result(calibration, asset)

    def list_asset_calibrations(self, db: Session, user_id: int) -> list[AssetCalibrationResult]:
        calibrations = db.scalars(
            select(AssetCalibration)
            .options(joinedload(AssetCalibration.asset))
            .where(AssetCalibration.user_id == user_id)
            .order_by(AssetCalibration.asset_id)
        ).all()
        return [self._to_asset_result(c, c.asset) for c in calibrations]

    def reset_asset_calibration(self, db: Session, user_id: int, asset_id: int) -> bool:
        """
        Remove an asset calibration. Idempotent.

        Returns:
            True if a calibration was removed
        """
        calibration = db.scalar(
            select(AssetCalibration)
            .where(AssetCalibration.user_id == user_id, AssetCalibration.asset_id == asset_id)
        )
        if calibration is None:
            return False

        db.delete(calibration)
        db.commit()
        logger.info(f"Removed calibration of asset {asset_id} for user {user_id}")
        return True

    @staticmethod
    def _to_asset_result(calibration: AssetCalibration, asset: Asset) -> AssetCalibrationResult:
        return AssetCalibrationResult(
            asset_id=asset.id,
            symbol=asset.symbol,
            currency=asset.currency,
            reference_price=calibration.reference_price,
            current_price=asset.current_price,
            adjustment_factor=calibration.adjustment_factor,
            adjustment_percent=format_adjustment_percent(calibration.adjustment_factor),
            updated_at=calibration.updated_at,
        )
