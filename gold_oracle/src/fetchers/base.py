"""Base fetcher interface and shared HTTP client management.

Quote fetchers inherit from BaseFetcher and implement the fetch() method.
A shared httpx.AsyncClient is reused across calls to avoid connection
overhead on every update cycle.

.. code-block:: python

    class MyFetcher(BaseFetcher):
        name = "myfetcher"

        async def fetch(self) -> QuoteResponse:
            response = await self._get("https://api.example.com/xau/usd")
            return QuoteResponse(
                spot_price_per_ounce=parse_price(response.json()["price"]),
                metal="XAU",
                currency="USD",
            )
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar

import httpx

from ..errors import FetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteResponse:
    """A validated spot quote from the external feed.

    :ivar spot_price_per_ounce: Spot price per troy ounce.
    :ivar metal: Metal symbol of the quote (e.g., "XAU").
    :ivar currency: Quote currency (e.g., "USD").
    :ivar timestamp: Upstream quote timestamp (unix seconds), if provided.
    """

    spot_price_per_ounce: Decimal
    metal: str
    currency: str
    timestamp: int | None = None


def parse_price(value: object) -> Decimal:
    """Convert a JSON price field into a finite Decimal.

    :param value: Raw value from the decoded JSON body.
    :returns: The price as Decimal.
    :raises FetchError: If the value is missing, not numeric or not finite.
    """
    # bool is an int subclass, but "price": true is not a price
    if value is None or isinstance(value, bool):
        raise FetchError(f"Invalid price field: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise FetchError(f"Price field is not finite: {value!r}")
    if not isinstance(value, (int, float, str)):
        raise FetchError(f"Invalid price field: {value!r}")

    try:
        price = Decimal(str(value))
    except InvalidOperation as e:
        raise FetchError(f"Price field is not numeric: {value!r}") from e

    if not price.is_finite():
        raise FetchError(f"Price field is not finite: {value!r}")
    return price


class BaseFetcher(ABC):
    """Abstract base class for quote fetchers.

    Subclasses must implement:
        - name: Class variable identifying the source (e.g., "goldapi")
        - fetch(): Async method returning a validated QuoteResponse

    :cvar name: Unique identifier for this fetcher.
    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar api_key: Optional API key for authenticated endpoints.
    :ivar timeout: Request timeout in seconds.
    """

    # Class-level shared HTTP client
    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    name: ClassVar[str] = ""

    DEFAULT_TIMEOUT = 10.0

    def __init__(self, api_key: str | None = None, timeout: float | None = None):
        """Initialize the fetcher.

        :param api_key: Optional API key for authenticated endpoints.
        :param timeout: Request timeout in seconds (default: 10).
        """
        self.api_key = api_key
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    @property
    def has_api_key(self) -> bool:
        """Check if this fetcher has an API key configured."""
        return self.api_key is not None and len(self.api_key) > 0

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Get or create the shared HTTP client.

        :returns: Shared httpx.AsyncClient instance.
        """
        if BaseFetcher._shared_client is None or BaseFetcher._shared_client.is_closed:
            BaseFetcher._shared_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                follow_redirects=True,
            )
        return BaseFetcher._shared_client

    @classmethod
    async def close_shared_client(cls) -> None:
        """Close the shared HTTP client."""
        client = BaseFetcher._shared_client
        if client is not None and not client.is_closed:
            await client.aclose()
        BaseFetcher._shared_client = None

    @abstractmethod
    async def fetch(self) -> QuoteResponse:
        """Fetch the current spot quote.

        :returns: Validated quote.
        :raises FetchError: If the upstream fails or returns a malformed body.
        """
        pass

    async def _get(
        self,
        url: str,
        *,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Make an HTTP GET request using the shared client.

        :param url: Request URL.
        :param params: Optional query parameters.
        :param headers: Optional request headers.
        :returns: httpx.Response object.
        :raises FetchError: On non-2xx response, network or timeout errors.
        """
        client = self.get_shared_client()
        try:
            response = await client.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise FetchError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise FetchError(f"Request failed: {e}") from e

        if not response.is_success:
            logger.debug(
                "HTTP GET %s failed with status %s: %s",
                url,
                response.status_code,
                response.text[:200],
            )
            raise FetchError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response
