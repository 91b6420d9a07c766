"""Unit tests for the quote fetchers."""

import asyncio
from decimal import Decimal

import httpx
import pytest

from gold_oracle.src.errors import FetchError
from gold_oracle.src.fetchers import BaseFetcher, GoldApiFetcher, parse_price

GOLDAPI_BODY = {
    "timestamp": 1700000000,
    "metal": "XAU",
    "currency": "USD",
    "exchange": "FOREXCOM",
    "symbol": "FOREXCOM:XAUUSD",
    "price": 2037.5,
    "ch": 3.1,
}


def run_fetch(fetcher: BaseFetcher, handler):
    """Run fetcher.fetch() against a mocked transport."""

    async def _run():
        BaseFetcher._shared_client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler)
        )
        try:
            return await fetcher.fetch()
        finally:
            await BaseFetcher.close_shared_client()

    return asyncio.run(_run())


class TestParsePrice:
    """Test price field validation."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (2037.5, Decimal("2037.5")),
            (2037, Decimal("2037")),
            ("2037.50", Decimal("2037.50")),
            (0, Decimal("0")),
        ],
    )
    def test_valid(self, value, expected) -> None:
        """Numbers and numeric strings are accepted."""
        assert parse_price(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, True, float("nan"), float("inf"), "NaN", "abc", [1], {"v": 1}],
    )
    def test_invalid(self, value) -> None:
        """Missing, NaN and non-numeric values raise FetchError."""
        with pytest.raises(FetchError):
            parse_price(value)


class TestGoldApiFetcherInit:
    """Test GoldApiFetcher configuration."""

    def test_defaults(self) -> None:
        fetcher = GoldApiFetcher(api_key="key")
        assert fetcher.url == "https://www.goldapi.io/api/XAU/USD"
        assert fetcher.timeout == BaseFetcher.DEFAULT_TIMEOUT
        assert fetcher.has_api_key

    def test_custom_endpoint(self) -> None:
        """Base URL trailing slash is ignored and symbols are uppercased."""
        fetcher = GoldApiFetcher(
            api_key="key", base_url="http://feed.local/api/", symbol="xag", currency="eur"
        )
        assert fetcher.url == "http://feed.local/api/XAG/EUR"


class TestGoldApiFetcherFetch:
    """Test fetch() against mocked responses."""

    def test_success(self) -> None:
        """A valid body yields a QuoteResponse."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=GOLDAPI_BODY)

        quote = run_fetch(GoldApiFetcher(api_key="secret"), handler)

        assert quote.spot_price_per_ounce == Decimal("2037.5")
        assert quote.metal == "XAU"
        assert quote.currency == "USD"
        assert quote.timestamp == 1700000000

        assert len(seen) == 1
        assert str(seen[0].url) == "https://www.goldapi.io/api/XAU/USD"
        assert seen[0].headers["x-access-token"] == "secret"

    def test_minimal_body(self) -> None:
        """Only the price field is required."""
        quote = run_fetch(
            GoldApiFetcher(api_key="secret"),
            lambda request: httpx.Response(200, json={"price": "1999.99"}),
        )
        assert quote.spot_price_per_ounce == Decimal("1999.99")
        assert quote.metal == "XAU"
        assert quote.timestamp is None

    def test_missing_api_key(self) -> None:
        """No request is made without an API key."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("request should not be sent")

        with pytest.raises(FetchError, match="API key required"):
            run_fetch(GoldApiFetcher(), handler)

    @pytest.mark.parametrize("status_code", [401, 403, 429, 500, 503])
    def test_http_error(self, status_code: int) -> None:
        """Non-2xx responses raise FetchError with the status code."""
        with pytest.raises(FetchError) as exc_info:
            run_fetch(
                GoldApiFetcher(api_key="secret"),
                lambda request: httpx.Response(status_code, text="nope"),
            )
        assert exc_info.value.status_code == status_code
        assert f"HTTP {status_code}" in str(exc_info.value)

    def test_missing_price(self) -> None:
        """A body without price raises FetchError."""
        body = {key: value for key, value in GOLDAPI_BODY.items() if key != "price"}
        with pytest.raises(FetchError, match="No price"):
            run_fetch(
                GoldApiFetcher(api_key="secret"),
                lambda request: httpx.Response(200, json=body),
            )

    def test_nan_price(self) -> None:
        """A NaN price raises FetchError."""
        with pytest.raises(FetchError, match="not finite"):
            run_fetch(
                GoldApiFetcher(api_key="secret"),
                lambda request: httpx.Response(200, content=b'{"price": NaN}'),
            )

    def test_null_price(self) -> None:
        with pytest.raises(FetchError, match="Invalid price"):
            run_fetch(
                GoldApiFetcher(api_key="secret"),
                lambda request: httpx.Response(200, json={"price": None}),
            )

    def test_not_json(self) -> None:
        """A non-JSON body raises FetchError."""
        with pytest.raises(FetchError, match="not valid JSON"):
            run_fetch(
                GoldApiFetcher(api_key="secret"),
                lambda request: httpx.Response(200, content=b"<html>maintenance</html>"),
            )

    def test_not_an_object(self) -> None:
        with pytest.raises(FetchError, match="Unexpected response format"):
            run_fetch(
                GoldApiFetcher(api_key="secret"),
                lambda request: httpx.Response(200, json=[2037.5]),
            )

    def test_network_error(self) -> None:
        """Connection failures raise FetchError without a status code."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchError, match="Request failed") as exc_info:
            run_fetch(GoldApiFetcher(api_key="secret"), handler)
        assert exc_info.value.status_code is None

    def test_timeout(self) -> None:
        """Timeouts raise FetchError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(FetchError, match="Request timeout"):
            run_fetch(GoldApiFetcher(api_key="secret"), handler)


class TestSharedClient:
    """Test shared HTTP client lifecycle."""

    def test_client_reused_and_closed(self) -> None:
        async def _run():
            first = BaseFetcher.get_shared_client()
            second = GoldApiFetcher.get_shared_client()
            assert first is second
            await BaseFetcher.close_shared_client()
            assert first.is_closed
            assert BaseFetcher._shared_client is None

        asyncio.run(_run())
