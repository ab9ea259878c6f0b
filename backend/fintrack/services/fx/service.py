# backend/fintrack/services/fx/service.py
"""
FX Rate Service - currency -> EUR rates for valuation.

Rates are resolved through a chain of sources, most authoritative first:

    USD -> EUR:
        cache -> ECB (1 / USD, sanity band 0.5..1.5) -> Yahoo EURUSD=X inverted
        -> configured fallback rate (never raises)

    XXX -> EUR:
        EUR is always 1 and never looked up; USD uses the chain above.
        cache -> ECB (1 / XXX, must be below 100) -> Yahoo XXXEUR=X
        -> Yahoo XXXUSD=X x USD->EUR -> FXRateNotFoundError

Convention:
    A rate of 0.92 for "USD" means 1 USD = 0.92 EUR, so
    value_eur = value_native x rate.

ECB rates are cached for FX_CACHE_TTL_SECONDS (1 hour by default, the ECB
publishes once a day). Yahoo-derived rates are cached for
FX_QUOTE_CACHE_TTL_SECONDS (2 minutes).

Failed lookups are cached for FX_QUOTE_CACHE_TTL_SECONDS as well, including
the fallback USD rate. During an outage the sources are asked at most once
per quote lifetime, not on every valuation.

build_rate_table() resolves every currency of a portfolio concurrently on
a bounded thread pool; one slow currency does not serialize the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextvars import copy_context
from decimal import Decimal
from typing import Iterable

from fintrack.config import settings
from fintrack.services.constants import (
    FALLBACK_CURRENCY,
    MAX_TO_EUR_RATE,
    REPORTING_CURRENCY,
    USD_EUR_MAX_RATE,
    USD_EUR_MIN_RATE,
)
from fintrack.services.exceptions import (
    FXProviderError,
    FXRateError,
    FXRateNotFoundError,
)
from fintrack.services.fx.cache import RateCache
from fintrack.services.fx.sources import EcbRateSource, YahooRateSource
from fintrack.services.valuation.types import FxRateTable

logger = logging.getLogger(__name__)

_ONE = Decimal("1")
_ECB_CACHE_KEY = "ecb:reference"
_UNRESOLVED_PREFIX = "unresolved:"


class FxRateService:
    """
    Resolves currency -> EUR rates with caching and source fallback.

    Thread-safe: the caches are locked and the sources are stateless, so a
    single instance is shared across requests (see dependencies.py).
    """

    def __init__(
            self,
            ecb_source: EcbRateSource | None = None,
            yahoo_source: YahooRateSource | None = None,
            reference_ttl_seconds: int | None = None,
            quote_ttl_seconds: int | None = None,
            fallback_usd_rate: Decimal | None = None,
            max_workers: int | None = None,
    ) -> None:
        """
        Initialize the FX rate service.

        Args:
            ecb_source: ECB source (default: configured ECB URL)
            yahoo_source: Yahoo Finance source (default: new instance)
            reference_ttl_seconds: Cache lifetime for ECB-derived rates
            quote_ttl_seconds: Cache lifetime for Yahoo-derived rates
            fallback_usd_rate: USD -> EUR rate used when every source fails
            max_workers: Thread pool size for build_rate_table
        """
        self._ecb = ecb_source or EcbRateSource(
            url=settings.ecb_rates_url,
            timeout=settings.fx_request_timeout_seconds,
        )
        self._yahoo = yahoo_source or YahooRateSource(
            timeout=settings.fx_request_timeout_seconds,
        )
        self._reference_ttl = (
            settings.fx_cache_ttl_seconds if reference_ttl_seconds is None else reference_ttl_seconds
        )
        self._quote_ttl = (
            settings.fx_quote_cache_ttl_seconds if quote_ttl_seconds is None else quote_ttl_seconds
        )
        self._fallback_usd_rate = fallback_usd_rate or settings.usd_eur_fallback_rate
        self._max_workers = max_workers or settings.fx_max_workers

        self._reference_cache = RateCache(default_ttl_seconds=self._reference_ttl)
        self._rate_cache = RateCache(default_ttl_seconds=self._reference_ttl)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_usd_to_eur_rate(self) -> Decimal:
        """
        Get the USD -> EUR rate.

        Never raises: falls back to the configured rate when the ECB and
        Yahoo Finance both fail or return implausible values.
        """
        cached = self._rate_cache.get(FALLBACK_CURRENCY)
        if cached is not None:
            return cached

        reference = self.get_reference_rates()
        eur_usd = reference.get(FALLBACK_CURRENCY) if reference else None
        if eur_usd:
            rate = _ONE / eur_usd
            if USD_EUR_MIN_RATE <= rate <= USD_EUR_MAX_RATE:
                self._rate_cache.set(FALLBACK_CURRENCY, rate, self._reference_ttl)
                logger.info(f"Exchange rate (ECB): 1 USD = {rate:.4f} EUR")
                return rate
            logger.warning(f"Suspicious USD/EUR rate from ECB: {rate}, trying Yahoo Finance")

        eur_usd = self._yahoo_pair(REPORTING_CURRENCY, FALLBACK_CURRENCY)
        if eur_usd:
            rate = _ONE / eur_usd
            if USD_EUR_MIN_RATE <= rate <= USD_EUR_MAX_RATE:
                self._rate_cache.set(FALLBACK_CURRENCY, rate, self._quote_ttl)
                logger.info(f"Exchange rate (Yahoo): 1 USD = {rate:.4f} EUR")
                return rate
            logger.warning(f"Suspicious USD/EUR rate from Yahoo: {rate}")

        logger.error(
            f"All FX sources failed for USD/EUR, using fallback rate {self._fallback_usd_rate}"
        )
        self._rate_cache.set(FALLBACK_CURRENCY, self._fallback_usd_rate, self._quote_ttl)
        return self._fallback_usd_rate

    def get_to_eur_rate(self, currency: str) -> Decimal:
        """
        Get the rate converting 1 unit of currency into EUR.

        Args:
            currency: ISO currency code (case-insensitive)

        Returns:
            Decimal rate > 0

        Raises:
            FXRateNotFoundError: No source has a rate for the currency
        """
        code = currency.strip().upper()
        if code == REPORTING_CURRENCY:
            return _ONE
        if code == FALLBACK_CURRENCY:
            return self.get_usd_to_eur_rate()

        cached = self._rate_cache.get(code)
        if cached is not None:
            return cached
        if self._rate_cache.get(_UNRESOLVED_PREFIX + code) is not None:
            raise FXRateNotFoundError(code, REPORTING_CURRENCY)

        reference = self.get_reference_rates()
        eur_to_x = reference.get(code) if reference else None
        if eur_to_x:
            rate = _ONE / eur_to_x
            if Decimal("0") < rate < MAX_TO_EUR_RATE:
                self._rate_cache.set(code, rate, self._reference_ttl)
                logger.info(f"Exchange rate (ECB): 1 {code} = {rate:.4f} EUR")
                return rate
        logger.debug(f"{code} not usable from ECB rates, trying Yahoo Finance")

        rate = self._yahoo_pair(code, REPORTING_CURRENCY)
        if rate:
            self._rate_cache.set(code, rate, self._quote_ttl)
            logger.info(f"Exchange rate (Yahoo): 1 {code} = {rate:.4f} EUR")
            return rate

        to_usd = self._yahoo_pair(code, FALLBACK_CURRENCY)
        if to_usd:
            rate = to_usd * self.get_usd_to_eur_rate()
            self._rate_cache.set(code, rate, self._quote_ttl)
            logger.info(f"Exchange rate (Yahoo via USD): 1 {code} = {rate:.4f} EUR")
            return rate

        logger.error(f"Failed to resolve {code}/EUR rate from any source")
        self._rate_cache.set(_UNRESOLVED_PREFIX + code, True, self._quote_ttl)
        raise FXRateNotFoundError(code, REPORTING_CURRENCY)

    def get_eur_rates(self) -> dict[str, Decimal]:
        """
        Get currency -> EUR rates for every ECB-published currency.

        Falls back to {EUR: 1, USD: usd_rate} when the ECB is unavailable.
        """
        reference = self.get_reference_rates()
        if reference:
            rates = {REPORTING_CURRENCY: _ONE}
            for code, eur_to_x in reference.items():
                if code != REPORTING_CURRENCY:
                    rates[code] = _ONE / eur_to_x
            return rates

        logger.warning("ECB rates unavailable, returning USD rate only")
        return {
            REPORTING_CURRENCY: _ONE,
            FALLBACK_CURRENCY: self.get_usd_to_eur_rate(),
        }

    def build_rate_table(self, currencies: Iterable[str]) -> FxRateTable:
        """
        Resolve every distinct currency into an FxRateTable.

        Lookups run concurrently. A currency that cannot be resolved is left
        out of the table and logged; the valuation then uses the USD rate
        for it.

        Args:
            currencies: Currency codes present in a portfolio (duplicates ok)

        Returns:
            FxRateTable with EUR pinned to 1 and the USD fallback rate
        """
        codes = sorted({c.strip().upper() for c in currencies} - {REPORTING_CURRENCY})

        # Resolves (and caches) the ECB document before the fan-out
        usd_rate = self.get_usd_to_eur_rate()

        rates: dict[str, Decimal] = {}
        if FALLBACK_CURRENCY in codes:
            rates[FALLBACK_CURRENCY] = usd_rate

        lookups = [code for code in codes if code != FALLBACK_CURRENCY]
        if lookups:
            workers = min(self._max_workers, len(lookups))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fx") as executor:
                futures = {
                    executor.submit(copy_context().run, self.get_to_eur_rate, code): code
                    for code in lookups
                }
                for future in as_completed(futures):
                    code = futures[future]
                    try:
                        rates[code] = future.result()
                    except FXRateError as e:
                        logger.warning(f"Using USD fallback rate for {code}: {e}")

        logger.debug(f"Built FX rate table for {codes}: {len(rates)} resolved")
        return FxRateTable.from_rates(rates, usd_rate)

    def get_reference_rates(self) -> dict[str, Decimal] | None:
        """
        ECB reference rates (1 EUR = X currency), cached.

        Returns:
            The rate map, or None if the ECB is unavailable
        """
        cached = self._reference_cache.get(_ECB_CACHE_KEY)
        if cached is not None:
            return cached or None

        try:
            rates = self._ecb.fetch_reference_rates()
        except FXProviderError as e:
            logger.warning(f"ECB rates failed, retrying in {self._quote_ttl}s: {e}")
            self._reference_cache.set(_ECB_CACHE_KEY, {}, self._quote_ttl)
            return None

        self._reference_cache.set(_ECB_CACHE_KEY, rates)
        return rates

    def clear_cache(self) -> None:
        """Drop all cached rates (next lookup hits the sources)."""
        self._reference_cache.clear()
        self._rate_cache.clear()

    def cache_info(self) -> dict[str, int]:
        """Number of cached entries, for health reporting."""
        return {
            "reference_documents": len(self._reference_cache),
            "currency_rates": len(self._rate_cache),
        }

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _yahoo_pair(self, base: str, quote: str) -> Decimal | None:
        """Yahoo Finance pair rate, None when unavailable or failing."""
        try:
            return self._yahoo.get_pair_rate(base, quote)
        except FXProviderError as e:
            logger.warning(f"Yahoo Finance failed for {base}/{quote}: {e}")
            return None
