"""
Quote fetchers for the gold spot price.

Usage:
    from gold_oracle.src.fetchers import GoldApiFetcher

    fetcher = GoldApiFetcher(api_key="your-api-key")
    quote = await fetcher.fetch()
    quote.spot_price_per_ounce
    # Decimal('2037.50')
"""

from .base import BaseFetcher, QuoteResponse, parse_price
from .goldapi import GoldApiFetcher

__all__ = [
    "BaseFetcher",
    "GoldApiFetcher",
    "QuoteResponse",
    "parse_price",
]
