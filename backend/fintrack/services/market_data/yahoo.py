# backend/fintrack/services/market_data/yahoo.py
"""
Yahoo Finance asset quotes via yfinance.

Provides the latest price and the previous close for one asset, in the
currency Yahoo reports for the listing. Valuation reads these two fields
from the assets table; the price refresh writes them.

Symbol conventions:
- Stocks and ETFs use the Yahoo symbol as stored ("AAPL", "SAP.DE").
- Crypto assets stored as a bare ticker ("BTC") are quoted against USD
  ("BTC-USD"). Symbols that already carry a pair are used as is.

Minor units:
    London and Johannesburg listings are quoted in pence and cents
    ("GBp", "ZAc"). Quotes are converted to the major unit so that prices
    and the FX table agree on the currency.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

import yfinance as yf

from fintrack.models import AssetType
from fintrack.services.constants import (
    MINOR_UNIT_CURRENCIES,
    PERCENT_PRECISION,
    PRICE_PRECISION,
)
from fintrack.services.exceptions import ProviderUnavailableError
from fintrack.services.market_data.base import MarketDataSource, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    """
    Latest market data for one asset.

    Attributes:
        symbol: Asset symbol as stored (not the Yahoo symbol)
        price: Latest close in currency
        previous_close: Close of the session before, None with a single session
        change_percent: Change against previous_close in percent, None without one
        currency: ISO code of price and previous_close, None if Yahoo omits it
    """

    symbol: str
    price: Decimal
    previous_close: Decimal | None
    change_percent: Decimal | None
    currency: str | None


class YahooQuoteSource(MarketDataSource):
    """
    Yahoo Finance daily quotes.

    Retry Behavior (inherited from MarketDataSource):
        - Retries on ProviderUnavailableError
        - An unknown or delisted symbol is not an error: get_quote returns None
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "yahoo"

    @staticmethod
    def yahoo_symbol(symbol: str, asset_type: AssetType) -> str:
        symbol = symbol.strip().upper()
        if asset_type == AssetType.CRYPTO and "-" not in symbol:
            return f"{symbol}-USD"
        return symbol

    def get_quote(self, symbol: str, asset_type: AssetType = AssetType.STOCK) -> PriceQuote | None:
        """
        Latest quote for an asset.

        Args:
            symbol: Asset symbol as stored
            asset_type: Decides the Yahoo symbol for crypto

        Returns:
            PriceQuote, or None if Yahoo has no usable data for the symbol

        Raises:
            ProviderUnavailableError: Yahoo Finance unreachable after retries
        """
        return self._execute_with_retry(self._fetch_quote, symbol, asset_type)

    def _fetch_quote(self, symbol: str, asset_type: AssetType) -> PriceQuote | None:
        yahoo_symbol = self.yahoo_symbol(symbol, asset_type)
        logger.debug(f"Fetching Yahoo quote {yahoo_symbol}")

        try:
            ticker = yf.Ticker(yahoo_symbol)
            df = ticker.history(period="5d", interval="1d", timeout=self._timeout)
        except Exception as e:
            error_str = str(e).lower()
            if "not found" in error_str or "no data" in error_str or "delisted" in error_str:
                logger.warning(f"No Yahoo data for {yahoo_symbol}: {e}")
                return None
            raise ProviderUnavailableError(provider=self.name, reason=str(e)) from e

        if df is None or df.empty or "Close" not in df:
            logger.warning(f"No Yahoo data for {yahoo_symbol}")
            return None

        closes = [to_decimal(float(value)) for value in df["Close"].dropna()]
        closes = [value for value in closes if value is not None and value > 0]
        if not closes:
            logger.warning(f"No valid closes for {yahoo_symbol}")
            return None

        price = closes[-1]
        previous_close = closes[-2] if len(closes) > 1 else None

        try:
            metadata = ticker.history_metadata or {}
        except Exception as e:
            logger.warning(f"No Yahoo metadata for {yahoo_symbol}, currency unknown: {e}")
            metadata = {}
        currency = metadata.get("currency")
        if currency in MINOR_UNIT_CURRENCIES:
            currency, divisor = MINOR_UNIT_CURRENCIES[currency]
            price = price / divisor
            if previous_close is not None:
                previous_close = previous_close / divisor
        elif currency:
            currency = currency.upper()

        price = price.quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP)
        if previous_close is not None:
            previous_close = previous_close.quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP)

        change_percent = None
        if previous_close is not None:
            change_percent = ((price - previous_close) / previous_close * Decimal("100")).quantize(
                PERCENT_PRECISION, rounding=ROUND_HALF_UP
            )

        return PriceQuote(
            symbol=symbol.strip().upper(),
            price=price,
            previous_close=previous_close,
            change_percent=change_percent,
            currency=currency,
        )
