"""Jupiter API client: swap quotes and spot prices."""

import asyncio
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..utils.config import get_config
from ..utils.logger import LoggerMixin
from ..utils.metrics import quote_requests, quote_request_duration
from .exceptions import QuoteProviderError
from .interfaces import PriceMap, PriceRecord, SwapQuote


# Jupiter error codes meaning "the request was fine but no route exists"
NO_ROUTE_ERROR_CODES = {
    "COULD_NOT_FIND_ANY_ROUTE",
    "NO_ROUTES_FOUND",
    "TOKEN_NOT_TRADABLE",
}

RETRYABLE_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


def _is_no_route_error(payload: Any) -> bool:
    """Check whether a 4xx payload describes a missing route."""
    if not isinstance(payload, dict):
        return False
    if payload.get("errorCode") in NO_ROUTE_ERROR_CODES:
        return True
    message = str(payload.get("error") or payload.get("message") or "").lower()
    return "no route" in message or "not tradable" in message


def parse_quote(data: Dict[str, Any], input_mint: str, output_mint: str, amount: int) -> SwapQuote:
    """
    Parse a Jupiter quote response.

    Args:
        data: Decoded JSON body
        input_mint: Mint spent
        output_mint: Mint received
        amount: Requested input amount in smallest units

    Returns:
        SwapQuote

    Raises:
        QuoteProviderError: If the body is malformed
    """
    try:
        out_amount = int(data.get("outAmount") or 0)
        in_amount = int(data.get("inAmount") or amount)
        impact = data.get("priceImpactPct")
        price_impact_pct = float(impact) if impact not in (None, "") else None
    except (TypeError, ValueError, OverflowError, AttributeError) as e:
        raise QuoteProviderError(f"Malformed quote response: {e}") from e

    return SwapQuote(
        input_mint=input_mint,
        output_mint=output_mint,
        in_amount=in_amount,
        out_amount=out_amount,
        price_impact_pct=price_impact_pct,
    )


def parse_prices(data: Any, token_ids: Iterable[str]) -> PriceMap:
    """
    Parse a Jupiter price response into a PriceMap.

    Accepts both the v3 shape (``{mint: {"usdPrice", "decimals"}}``) and the
    v2 shape (``{"data": {mint: {"price"}}}``). Tokens without an entry, with
    a null entry, or with a non-finite price are left out of the map.
    """
    if not isinstance(data, dict):
        raise QuoteProviderError("Malformed price response")

    entries = data.get("data") if isinstance(data.get("data"), dict) else data
    records: Dict[str, PriceRecord] = {}

    for token_id in token_ids:
        entry = entries.get(token_id)
        if not isinstance(entry, dict):
            continue

        raw_price = entry.get("usdPrice", entry.get("price"))
        if raw_price is None:
            continue

        decimals = entry.get("decimals")
        try:
            usd_price = Decimal(str(raw_price))
            record = PriceRecord(
                token_id=token_id,
                usd_price=usd_price,
                decimals=int(decimals) if decimals is not None else None,
            )
        except (InvalidOperation, TypeError, ValueError, OverflowError) as e:
            raise QuoteProviderError(f"Malformed price entry for {token_id}: {entry!r}") from e

        # NaN and Infinity decode from JSON but are not prices
        if not usd_price.is_finite():
            continue
        records[token_id] = record

    return PriceMap(records)


class JupiterClient(LoggerMixin):
    """
    Async HTTP client for the Jupiter quote and price APIs.

    Implements the swap quote provider used by the honeypot detector.
    """

    def __init__(self, max_retries: Optional[int] = None):
        self.config = get_config()
        self.max_retries = max_retries if max_retries is not None else self.config.jupiter_max_retries
        self.session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self.session:
            timeout = aiohttp.ClientTimeout(total=self.config.jupiter_timeout)
            headers = {"Accept": "application/json"}
            if self.config.jupiter_api_key:
                headers["x-api-key"] = self.config.jupiter_api_key
            self.session = aiohttp.ClientSession(timeout=timeout, headers=headers)

    async def close(self) -> None:
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def _get_json(self, url: str, params: Dict[str, str], endpoint: str) -> tuple:
        """
        GET a JSON document with retry on connection errors.

        Returns:
            Tuple of (HTTP status, decoded body or None)
        """
        await self.initialize()

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, self.max_retries)),
            wait=wait_exponential(multiplier=1, min=1, max=5),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        ):
            with attempt:
                start_time = datetime.now()
                try:
                    async with self.session.get(url, params=params) as response:
                        status = response.status
                        try:
                            body = await response.json(content_type=None)
                        except ValueError:
                            body = None
                except Exception:
                    quote_requests.labels(endpoint=endpoint, status="error").inc()
                    raise
                finally:
                    duration = (datetime.now() - start_time).total_seconds()
                    quote_request_duration.labels(endpoint=endpoint).observe(duration)

                quote_requests.labels(endpoint=endpoint, status=str(status)).inc()
                return status, body

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_pct: float,
    ) -> SwapQuote:
        """
        Request the best swap route.

        Args:
            input_mint: Mint spent
            output_mint: Mint received
            amount: Input amount in smallest units
            slippage_pct: Slippage tolerance in percent

        Returns:
            SwapQuote; ``out_amount`` is 0 when Jupiter reports no route

        Raises:
            QuoteProviderError: On transport failure or unexpected status
        """
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(int(round(slippage_pct * 100))),
        }

        try:
            status, body = await self._get_json(self.config.jupiter_quote_url, params, "quote")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Jupiter quote request failed: {e}")
            raise QuoteProviderError(f"Quote request failed: {e}") from e

        if status == 200 and isinstance(body, dict):
            return parse_quote(body, input_mint, output_mint, amount)

        if 400 <= status < 500 and _is_no_route_error(body):
            self.logger.info(f"No route from {input_mint} to {output_mint}: {body}")
            return SwapQuote(input_mint=input_mint, output_mint=output_mint, in_amount=amount)

        self.logger.error(f"Jupiter quote returned HTTP {status}: {body}")
        raise QuoteProviderError(f"Quote request returned HTTP {status}")

    async def get_prices(self, token_ids: Iterable[str]) -> PriceMap:
        """
        Fetch spot USD prices for a set of tokens.

        Args:
            token_ids: Token mint addresses

        Returns:
            PriceMap containing only the tokens Jupiter has prices for

        Raises:
            QuoteProviderError: On transport failure or unexpected status
        """
        token_ids = list(dict.fromkeys(token_ids))
        if not token_ids:
            return PriceMap()

        params = {"ids": ",".join(token_ids)}

        try:
            status, body = await self._get_json(self.config.jupiter_price_url, params, "price")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Jupiter price request failed: {e}")
            raise QuoteProviderError(f"Price request failed: {e}") from e

        if status != 200:
            self.logger.error(f"Jupiter price returned HTTP {status}: {body}")
            raise QuoteProviderError(f"Price request returned HTTP {status}")

        return parse_prices(body, token_ids)

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
