"""GoldAPI.io fetcher.

Endpoint: https://www.goldapi.io/api/{SYMBOL}/{CURRENCY}
Auth: x-access-token header
API Key: Required
Response: JSON object with a numeric "price" (per troy ounce)
"""

from __future__ import annotations

import logging

from ..errors import FetchError
from .base import BaseFetcher, QuoteResponse, parse_price

logger = logging.getLogger(__name__)


class GoldApiFetcher(BaseFetcher):
    """Fetcher for the GoldAPI.io spot price endpoint.

    :ivar base_url: API base URL.
    :ivar symbol: Metal symbol (e.g., "XAU").
    :ivar currency: Quote currency (e.g., "USD").
    """

    name = "goldapi"
    BASE_URL = "https://www.goldapi.io/api"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        base_url: str | None = None,
        symbol: str = "XAU",
        currency: str = "USD",
    ):
        """Initialize the GoldAPI fetcher.

        :param api_key: GoldAPI access token.
        :param timeout: Request timeout in seconds.
        :param base_url: Optional base URL override.
        :param symbol: Metal symbol (default: "XAU").
        :param currency: Quote currency (default: "USD").
        """
        super().__init__(api_key=api_key, timeout=timeout)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.symbol = symbol.upper()
        self.currency = currency.upper()

    @property
    def url(self) -> str:
        """Return the quote URL for the configured symbol and currency."""
        return f"{self.base_url}/{self.symbol}/{self.currency}"

    async def fetch(self) -> QuoteResponse:
        """Fetch the spot price from GoldAPI.io.

        :returns: Validated quote.
        :raises FetchError: On HTTP failure or malformed response body.
        """
        if not self.has_api_key:
            raise FetchError("[goldapi] API key required but not provided")

        logger.info(f"Fetching gold price from: {self.url}")
        response = await self._get(self.url, headers={"x-access-token": self.api_key})

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"[goldapi] Response is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise FetchError(f"[goldapi] Unexpected response format: {data!r}")
        if "price" not in data:
            raise FetchError(f"[goldapi] No price in response: {data}")

        price = parse_price(data["price"])

        timestamp = data.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            timestamp = None

        quote = QuoteResponse(
            spot_price_per_ounce=price,
            metal=str(data.get("metal") or self.symbol),
            currency=str(data.get("currency") or self.currency),
            timestamp=timestamp,
        )
        logger.info(
            f"[goldapi] {quote.metal}/{quote.currency}: "
            f"${quote.spot_price_per_ounce} per ounce"
        )
        return quote
