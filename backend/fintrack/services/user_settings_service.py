# backend/fintrack/services/user_settings_service.py
"""
User settings store for the EUR calibration state.

This service handles:
- Reading a user's adjustment factor (1.0 when no settings row exists)
- Row-locked reads for read-modify-write sequences (calibration)
- Upserting calibration fields with change tracking

Design Principles:
- Single Responsibility: Only reads and writes user_settings rows
- Sensible Defaults: A missing row behaves like factor 1.0, uncalibrated
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- Caller owns the transaction when commit=False
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fintrack.models import UserSettings
from fintrack.services.constants import DEFAULT_ADJUSTMENT_FACTOR

logger = logging.getLogger(__name__)

# Marks an upsert argument that was not passed (None is a real value: "clear")
_UNSET: Any = object()


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class SettingsUpdateResult:
    """Result of upserting user settings."""

    settings: UserSettings
    was_created: bool
    changed_fields: list[str]


# =============================================================================
# SERVICE
# =============================================================================

class UserSettingsStore:
    """Reads and writes per-user calibration settings."""

    def get(self, db: Session, user_id: int) -> UserSettings | None:
        """
        Get settings for a user.

        Returns None if no settings exist yet.
        """
        return db.scalar(
            select(UserSettings)
            .where(UserSettings.user_id == user_id)
        )

    def get_adjustment_factor(self, db: Session, user_id: int) -> Decimal:
        """The user's EUR adjustment factor, 1.0 when never calibrated."""
        settings = self.get(db, user_id)
        if settings is None or settings.eur_price_adjustment_factor is None:
            return DEFAULT_ADJUSTMENT_FACTOR
        return settings.eur_price_adjustment_factor

    def get_for_update(self, db: Session, user_id: int) -> tuple[UserSettings, bool]:
        """
        Get the settings row locked for update, creating it if missing.

        Issues SELECT ... FOR UPDATE so concurrent writers for the same user
        queue behind the current transaction. Does not commit. Call it
        before any other write in the transaction: losing the creation race
        rolls the session back.

        Returns:
            (settings, was_created)
        """
        settings = db.scalar(
            select(UserSettings)
            .where(UserSettings.user_id == user_id)
            .with_for_update()
        )
        if settings is not None:
            return settings, False

        logger.info(f"Creating default settings for user {user_id}")
        settings = UserSettings(
            user_id=user_id,
            eur_price_adjustment_factor=DEFAULT_ADJUSTMENT_FACTOR,
        )
        db.add(settings)
        try:
            db.flush()
        except IntegrityError:
            # Another transaction created the row first
            db.rollback()
            logger.debug(f"Settings for user {user_id} created concurrently, re-reading")
            settings = db.scalar(
                select(UserSettings)
                .where(UserSettings.user_id == user_id)
                .with_for_update()
            )
            return settings, False

        return settings, True

    def upsert(
            self,
            db: Session,
            user_id: int,
            eur_price_adjustment_factor: Decimal = _UNSET,
            reference_portfolio_value: Decimal | None = _UNSET,
            last_calibration_at: datetime | None = _UNSET,
            commit: bool = True,
    ) -> SettingsUpdateResult:
        """
        Create or update a user's settings.

        Only the fields that are passed are written; pass None to clear
        reference_portfolio_value or last_calibration_at.

        Args:
            commit: Commit the session (False when the caller holds a
                larger transaction)
        """
        settings, was_created = self.get_for_update(db, user_id)
        changed_fields: list[str] = []

        updates = {
            "eur_price_adjustment_factor": eur_price_adjustment_factor,
            "reference_portfolio_value": reference_portfolio_value,
            "last_calibration_at": last_calibration_at,
        }
        for field_name, value in updates.items():
            if value is _UNSET:
                continue
            if getattr(settings, field_name) != value:
                setattr(settings, field_name, value)
                changed_fields.append(field_name)

        if commit:
            db.commit()
            db.refresh(settings)
        else:
            db.flush()

        if changed_fields:
            logger.info(f"Updated settings for user {user_id}: {changed_fields}")

        return SettingsUpdateResult(
            settings=settings,
            was_created=was_created,
            changed_fields=changed_fields,
        )
