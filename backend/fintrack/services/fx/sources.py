# backend/fintrack/services/fx/sources.py
"""
FX rate sources.

Two upstream sources feed the FX rate service:
- EcbRateSource: the European Central Bank daily reference rates. One XML
  document lists every published currency as "1 EUR = X currency".
- YahooRateSource: Yahoo Finance currency pairs (e.g. "USDEUR=X") via
  yfinance, used for currencies the ECB does not publish and as a fallback
  when the ECB is unreachable.

Both sources share the retry policy defined in FxRateSource: transient
failures (FXProviderError) are retried with exponential backoff; anything
else propagates immediately.
"""

import logging
import xml.etree.ElementTree as ET
from decimal import Decimal

import httpx
import yfinance as yf

from fintrack.services.exceptions import FXProviderError
from fintrack.services.market_data.base import MarketDataSource, to_decimal

logger = logging.getLogger(__name__)


# =============================================================================
# BASE SOURCE
# =============================================================================

class FxRateSource(MarketDataSource):
    """
    Base class for FX rate sources.

    Retries FXProviderError (network failures, upstream errors, unusable
    documents); anything else propagates immediately.
    """

    RETRYABLE_ERRORS = (FXProviderError,)


# =============================================================================
# ECB
# =============================================================================

class EcbRateSource(FxRateSource):
    """
    European Central Bank daily reference rates.

    Document shape (namespaces omitted):
        <Envelope><Cube><Cube time="2024-06-14">
            <Cube currency="USD" rate="1.0708"/>
            ...
        </Cube></Cube></Envelope>
    """

    def __init__(
            self,
            url: str,
            timeout: float = 10.0,
            transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            url: Location of eurofxref-daily.xml
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "ecb"

    def fetch_reference_rates(self) -> dict[str, Decimal]:
        """
        Fetch all reference rates.

        Returns:
            Mapping currency -> units of that currency per 1 EUR

        Raises:
            FXProviderError: Network failure, HTTP error or unusable document
        """
        return self._execute_with_retry(self._fetch_reference_rates)

    def _fetch_reference_rates(self) -> dict[str, Decimal]:
        logger.debug(f"Fetching ECB reference rates from {self._url}")
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self._url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise FXProviderError(provider=self.name, reason=str(e)) from e

        rates = self.parse_reference_rates(response.content)
        if not rates:
            raise FXProviderError(provider=self.name, reason="no rates in document")

        logger.info(f"ECB rates fetched: {len(rates)} currencies")
        return rates

    def parse_reference_rates(self, document: bytes) -> dict[str, Decimal]:
        """Extract currency -> rate pairs from an eurofxref document."""
        try:
            root = ET.fromstring(document)
        except ET.ParseError as e:
            raise FXProviderError(provider=self.name, reason=f"malformed XML: {e}") from e

        rates: dict[str, Decimal] = {}
        for element in root.iter():
            if not element.tag.endswith("Cube"):
                continue
            currency = element.attrib.get("currency")
            rate = to_decimal(element.attrib.get("rate"))
            if currency and rate is not None and rate > 0:
                rates[currency.upper()] = rate
        return rates


# =============================================================================
# YAHOO FINANCE
# =============================================================================

class YahooRateSource(FxRateSource):
    """
    Yahoo Finance currency pair quotes.

    A pair symbol "XXXYYY=X" quotes the price of 1 XXX in YYY.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "yahoo"

    def get_pair_rate(self, base: str, quote: str) -> Decimal | None:
        """
        Latest close for 1 base in quote currency.

        Returns:
            The rate, or None if Yahoo has no usable data for the pair

        Raises:
            FXProviderError: Yahoo Finance unreachable after retries
        """
        return self._execute_with_retry(self._fetch_pair_rate, base.upper(), quote.upper())

    def _fetch_pair_rate(self, base: str, quote: str) -> Decimal | None:
        symbol = f"{base}{quote}=X"
        logger.debug(f"Fetching Yahoo FX quote {symbol}")

        try:
            df = yf.Ticker(symbol).history(period="5d", interval="1d", timeout=self._timeout)
        except Exception as e:
            error_str = str(e).lower()
            if "not found" in error_str or "no data" in error_str or "delisted" in error_str:
                logger.warning(f"No Yahoo FX data for {symbol}: {e}")
                return None
            raise FXProviderError(provider=self.name, reason=str(e)) from e

        if df is None or df.empty or "Close" not in df:
            logger.warning(f"No Yahoo FX data for {symbol}")
            return None

        closes = df["Close"].dropna()
        if closes.empty:
            return None

        rate = to_decimal(float(closes.iloc[-1]))
        if rate is None or rate <= 0:
            logger.warning(f"Invalid Yahoo FX quote for {symbol}: {rate}")
            return None
        return rate
