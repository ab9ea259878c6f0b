# backend/fintrack/services/asset_service.py
"""
Asset registry and price refresh.

Assets are global: AAPL is the same row for every user. Their
current_price and previous_close are the only price inputs of the
valuation, and this service is what writes them:

- import_asset: registers a symbol and seeds its prices from Yahoo Finance.
  Importing a symbol that already exists returns the existing row.
- refresh_prices: fetches a fresh quote for every asset (or a subset) and
  updates the price columns. Quotes are fetched concurrently; all database
  writes happen on the calling thread.

A quote failure never aborts an import or a refresh. The asset keeps its
previous prices (or none) and the failure is reported to the caller.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextvars import copy_context
from dataclasses import dataclass, field

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from fintrack.models import Asset, AssetType
from fintrack.services.constants import FALLBACK_CURRENCY, PRICE_REFRESH_MAX_WORKERS
from fintrack.services.exceptions import AssetNotFoundError, MarketDataError, ValidationError
from fintrack.services.market_data import PriceQuote, YahooQuoteSource

logger = logging.getLogger(__name__)


@dataclass
class AssetImportResult:
    """Result of importing a symbol."""

    asset: Asset
    was_created: bool


@dataclass
class PriceRefreshResult:
    """
    Outcome of a price refresh.

    Attributes:
        updated: Number of assets whose prices were written
        errors: One "SYMBOL: reason" entry per asset left unchanged
    """

    updated: int = 0
    errors: list[str] = field(default_factory=list)


class AssetService:
    """Lists, imports and re-prices assets."""

    def __init__(
            self,
            quote_source: YahooQuoteSource | None = None,
            max_workers: int = PRICE_REFRESH_MAX_WORKERS,
    ) -> None:
        self._quotes = quote_source or YahooQuoteSource()
        self._max_workers = max_workers

    # =========================================================================
    # READ
    # =========================================================================

    def list_assets(
            self,
            db: Session,
            asset_type: AssetType | None = None,
            search: str | None = None,
            skip: int = 0,
            limit: int = 100,
    ) -> tuple[list[Asset], int]:
        """
        Assets ordered by symbol, with the total count before pagination.

        Args:
            asset_type: Only assets of this type
            search: Case-insensitive substring of symbol or name
        """
        query = select(Asset)
        if asset_type is not None:
            query = query.where(Asset.type == asset_type)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Asset.symbol.ilike(pattern), Asset.name.ilike(pattern)))

        total = db.scalar(select(func.count()).select_from(query.subquery()))
        assets = db.scalars(query.order_by(Asset.symbol).offset(skip).limit(limit)).all()
        return list(assets), total

    def get_asset(self, db: Session, asset_id: int) -> Asset:
        """Raises AssetNotFoundError for an unknown id."""
        asset = db.get(Asset, asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    # =========================================================================
    # WRITE
    # =========================================================================

    def import_asset(
            self,
            db: Session,
            symbol: str,
            name: str,
            asset_type: AssetType = AssetType.STOCK,
            currency: str | None = None,
    ) -> AssetImportResult:
        """
        Register a symbol, seeding its prices from Yahoo Finance.

        Args:
            symbol: Yahoo symbol ("AAPL", "SAP.DE") or crypto ticker ("BTC")
            name: Display name
            asset_type: Asset type
            currency: Currency to record when Yahoo reports none
                (default: USD)

        Returns:
            AssetImportResult; was_created is False when the symbol existed

        Raises:
            ValidationError: Empty symbol or name
        """
        symbol = symbol.strip().upper()
        name = name.strip()
        if not symbol:
            raise ValidationError("Symbol must not be empty", field="symbol")
        if not name:
            raise ValidationError("Name must not be empty", field="name")

        existing = db.scalar(select(Asset).where(Asset.symbol == symbol))
        if existing is not None:
            logger.debug(f"Asset {symbol} already registered as {existing.id}")
            return AssetImportResult(asset=existing, was_created=False)

        quote: PriceQuote | None = None
        try:
            quote = self._quotes.get_quote(symbol, asset_type)
        except MarketDataError as e:
            logger.warning(f"Importing {symbol} without prices: {e}")

        asset = Asset(
            symbol=symbol,
            name=name,
            type=asset_type,
            currency=(quote and quote.currency) or (currency or FALLBACK_CURRENCY).upper(),
        )
        if quote is not None:
            self._apply_quote(asset, quote)

        db.add(asset)
        db.commit()
        db.refresh(asset)

        logger.info(
            f"Imported asset {symbol} ({asset_type.value}) as {asset.id}: "
            f"price={asset.current_price} {asset.currency}"
        )
        return AssetImportResult(asset=asset, was_created=True)

    def refresh_prices(self, db: Session, asset_ids: list[int] | None = None) -> PriceRefreshResult:
        """
        Fetch a quote for each asset and store its prices.

        Args:
            asset_ids: Assets to refresh (default: all)

        Returns:
            PriceRefreshResult with the number updated and per-symbol errors
        """
        query = select(Asset).order_by(Asset.id)
        if asset_ids is not None:
            query = query.where(Asset.id.in_(asset_ids))
        assets = db.scalars(query).all()

        result = PriceRefreshResult()
        if not assets:
            return result

        # Workers only see plain values; the session stays on this thread
        requests = {asset.id: (asset.symbol, asset.type) for asset in assets}
        quotes: dict[int, PriceQuote | None] = {}
        failures: dict[int, str] = {}

        workers = min(self._max_workers, len(requests))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quotes") as executor:
            futures = {
                executor.submit(copy_context().run, self._quotes.get_quote, symbol, asset_type): asset_id
                for asset_id, (symbol, asset_type) in requests.items()
            }
            for future in as_completed(futures):
                asset_id = futures[future]
                try:
                    quotes[asset_id] = future.result()
                except MarketDataError as e:
                    failures[asset_id] = str(e)

        for asset in assets:
            quote = quotes.get(asset.id)
            if quote is None:
                reason = failures.get(asset.id, "no quote available")
                logger.warning(f"Price refresh skipped {asset.symbol}: {reason}")
                result.errors.append(f"{asset.symbol}: {reason}")
                continue
            if quote.currency and quote.currency != asset.currency.upper():
                logger.warning(
                    f"Price refresh skipped {asset.symbol}: quoted in {quote.currency}, "
                    f"stored as {asset.currency}"
                )
                result.errors.append(
                    f"{asset.symbol}: quoted in {quote.currency}, expected {asset.currency}"
                )
                continue
            self._apply_quote(asset, quote)
            result.updated += 1

        db.commit()
        logger.info(f"Refreshed prices for {result.updated}/{len(assets)} assets")
        return result

    # =========================================================================
    # INTERNAL
    # =========================================================================

    @staticmethod
    def _apply_quote(asset: Asset, quote: PriceQuote) -> None:
        asset.current_price = quote.price
        asset.previous_close = quote.previous_close
        asset.change_percent = quote.change_percent
