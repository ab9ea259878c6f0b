# backend/fintrack/services/market_data/__init__.py
"""
Market data package.

Usage:
    from fintrack.services.market_data import YahooQuoteSource

    quote = YahooQuoteSource().get_quote("SAP.DE")
    if quote is not None:
        print(quote.price, quote.currency)

Architecture:
    market_data/
    ├── __init__.py      # This file - package exports
    ├── base.py          # MarketDataSource (tenacity retry policy)
    └── yahoo.py         # YahooQuoteSource, PriceQuote
"""

from fintrack.services.market_data.base import MarketDataSource
from fintrack.services.market_data.yahoo import PriceQuote, YahooQuoteSource

__all__ = [
    "MarketDataSource",
    "YahooQuoteSource",
    "PriceQuote",
]
