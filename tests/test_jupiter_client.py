"""Tests for the Jupiter quote and price client."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from honeypot_scanner.core.exceptions import QuoteProviderError
from honeypot_scanner.core.jupiter_client import JupiterClient, parse_prices, parse_quote

from .conftest import BONK, USDC


def mock_response(status, body):
    """Build an aiohttp-like response usable as ``async with`` target."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=body)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


@pytest.fixture
def jupiter():
    """Jupiter client with a mocked session and no retries."""
    client = JupiterClient(max_retries=1)
    client.session = MagicMock()
    return client


class TestGetQuote:
    """Tests for JupiterClient.get_quote."""

    @pytest.mark.asyncio
    async def test_route_found(self, jupiter):
        """A 200 response yields a quote with the output amount."""
        jupiter.session.get = MagicMock(return_value=mock_response(200, {
            "inputMint": USDC,
            "outputMint": BONK,
            "inAmount": "1000",
            "outAmount": "64012",
            "priceImpactPct": "0.0012",
            "routePlan": [{"swapInfo": {}}, {"swapInfo": {}}],
        }))

        quote = await jupiter.get_quote(USDC, BONK, 1000, 10.0)

        assert quote.route_exists is True
        assert quote.out_amount == 64012
        assert quote.in_amount == 1000
        assert quote.price_impact_pct == pytest.approx(0.0012)

        params = jupiter.session.get.call_args.kwargs["params"]
        assert params["inputMint"] == USDC
        assert params["outputMint"] == BONK
        assert params["amount"] == "1000"
        assert params["slippageBps"] == "1000"

    @pytest.mark.asyncio
    async def test_no_route_is_empty_quote(self, jupiter):
        """Jupiter's no-route error is a valid, empty quote."""
        jupiter.session.get = MagicMock(return_value=mock_response(400, {
            "error": "No routes found",
            "errorCode": "COULD_NOT_FIND_ANY_ROUTE",
        }))

        quote = await jupiter.get_quote(USDC, BONK, 1000, 10.0)

        assert quote.route_exists is False
        assert quote.out_amount == 0

    @pytest.mark.asyncio
    async def test_server_error_raises(self, jupiter):
        """5xx responses are provider errors."""
        jupiter.session.get = MagicMock(return_value=mock_response(503, None))

        with pytest.raises(QuoteProviderError):
            await jupiter.get_quote(USDC, BONK, 1000, 10.0)

    @pytest.mark.asyncio
    async def test_unexpected_client_error_raises(self, jupiter):
        """4xx responses that are not about routing are provider errors."""
        jupiter.session.get = MagicMock(return_value=mock_response(401, {"error": "Unauthorized"}))

        with pytest.raises(QuoteProviderError):
            await jupiter.get_quote(USDC, BONK, 1000, 10.0)

    @pytest.mark.asyncio
    async def test_connection_error_raises(self, jupiter):
        """Transport failures are wrapped in QuoteProviderError."""
        jupiter.session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("reset"))

        with pytest.raises(QuoteProviderError):
            await jupiter.get_quote(USDC, BONK, 1000, 10.0)

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, jupiter):
        """Garbage output amounts are provider errors."""
        jupiter.session.get = MagicMock(return_value=mock_response(200, {"outAmount": "lots"}))

        with pytest.raises(QuoteProviderError):
            await jupiter.get_quote(USDC, BONK, 1000, 10.0)


class TestGetPrices:
    """Tests for JupiterClient.get_prices."""

    @pytest.mark.asyncio
    async def test_prices_parsed(self, jupiter):
        """Listed tokens are returned with price and decimals."""
        jupiter.session.get = MagicMock(return_value=mock_response(200, {
            USDC: {"usdPrice": 0.9998, "decimals": 6, "blockId": 1},
            BONK: {"usdPrice": 0.00001534, "decimals": 5, "blockId": 1},
        }))

        prices = await jupiter.get_prices([BONK, USDC])

        assert prices.get(BONK).usd_price == Decimal("0.00001534")
        assert prices.get(BONK).decimals == 5
        assert prices.get(USDC).usd_price == Decimal("0.9998")
        assert jupiter.session.get.call_args.kwargs["params"]["ids"] == f"{BONK},{USDC}"

    @pytest.mark.asyncio
    async def test_unlisted_token_absent(self, jupiter):
        """Unlisted tokens resolve to None rather than raising."""
        jupiter.session.get = MagicMock(return_value=mock_response(200, {
            USDC: {"usdPrice": 1.0, "decimals": 6},
            BONK: None,
        }))

        prices = await jupiter.get_prices([BONK, USDC])

        assert prices.get(BONK) is None
        assert BONK not in prices
        assert len(prices) == 1

    @pytest.mark.asyncio
    async def test_http_error_raises(self, jupiter):
        """Non-200 price responses are provider errors."""
        jupiter.session.get = MagicMock(return_value=mock_response(429, {"error": "rate limited"}))

        with pytest.raises(QuoteProviderError):
            await jupiter.get_prices([BONK])

    @pytest.mark.asyncio
    async def test_empty_request_skips_network(self, jupiter):
        """No ids means no request."""
        jupiter.session.get = MagicMock()

        prices = await jupiter.get_prices([])

        assert len(prices) == 0
        jupiter.session.get.assert_not_called()


class TestParsePrices:
    """Tests for the price response parser."""

    def test_v2_shape(self):
        """Responses wrapped in ``data`` with string prices are accepted."""
        prices = parse_prices({"data": {BONK: {"id": BONK, "price": "0.0000153"}}}, [BONK])

        assert prices.get(BONK).usd_price == Decimal("0.0000153")
        assert prices.get(BONK).decimals is None

    def test_malformed_price_raises(self):
        """Non-numeric prices are provider errors."""
        with pytest.raises(QuoteProviderError):
            parse_prices({BONK: {"usdPrice": "n/a"}}, [BONK])

    def test_non_dict_raises(self):
        """Non-object bodies are provider errors."""
        with pytest.raises(QuoteProviderError):
            parse_prices(None, [BONK])

    @pytest.mark.parametrize("price", [float("nan"), float("inf"), "NaN", "-Infinity"])
    def test_non_finite_price_absent(self, price):
        """Non-finite prices are left out like unlisted tokens."""
        prices = parse_prices({
            USDC: {"usdPrice": 1, "decimals": 6},
            BONK: {"usdPrice": price, "decimals": 6},
        }, [BONK, USDC])

        assert prices.get(BONK) is None
        assert prices.get(USDC).usd_price == Decimal("1")


class TestParseQuote:
    """Tests for the quote response parser."""

    def test_route_plan_shape_ignored(self):
        """Only amounts and price impact are read from the body."""
        quote = parse_quote({"outAmount": "5", "routePlan": 3}, USDC, BONK, 1000)

        assert quote.out_amount == 5
        assert quote.in_amount == 1000
        assert quote.price_impact_pct is None

    @pytest.mark.parametrize("body", [
        {"outAmount": float("inf")},
        {"outAmount": "5", "priceImpactPct": {"value": 1}},
        {"outAmount": ["5"]},
    ])
    def test_malformed_fields_raise(self, body):
        """Unusable amounts or price impact are provider errors."""
        with pytest.raises(QuoteProviderError):
            parse_quote(body, USDC, BONK, 1000)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
