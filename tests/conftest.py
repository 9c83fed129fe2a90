"""Shared test fixtures and in-memory collaborators."""

import asyncio
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

import pytest

from honeypot_scanner.core.exceptions import ChainReadError
from honeypot_scanner.core.interfaces import MintState, PriceMap, PriceRecord, SwapQuote


USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
SPL_TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
PUMP_PROGRAM = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"
AUTHORITY_WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"

# 1 USDC spent; BONK priced at 0.5 USDC, so 2 BONK are expected
TRIAL_AMOUNT = 1_000_000
HEALTHY_OUT_AMOUNT = 2_000_000


class FakeChainReader:
    """Chain state reader returning canned mint state and owner."""

    def __init__(
        self,
        mint_state: Optional[MintState] = None,
        owner: Optional[str] = SPL_TOKEN_PROGRAM,
        mint_error: Optional[Exception] = None,
        owner_error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.mint_state = mint_state or MintState(decimals=6, supply=10**15)
        self.owner = owner
        self.mint_error = mint_error
        self.owner_error = owner_error
        self.delay = delay
        self.calls: List[tuple] = []

    async def read_mint_state(self, token_id: str) -> MintState:
        self.calls.append(("read_mint_state", token_id))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.mint_error:
            raise self.mint_error
        return self.mint_state

    async def read_account_owner(self, token_id: str) -> Optional[str]:
        self.calls.append(("read_account_owner", token_id))
        if self.owner_error:
            raise self.owner_error
        return self.owner


class FakeQuoteProvider:
    """Swap quote provider returning canned quotes and prices."""

    def __init__(
        self,
        out_amount: int = HEALTHY_OUT_AMOUNT,
        prices: Optional[Dict[str, PriceRecord]] = None,
        quote_error: Optional[Exception] = None,
        price_error: Optional[Exception] = None,
        delay: float = 0.0,
        price_impact_pct: Optional[float] = None,
    ):
        self.out_amount = out_amount
        self.price_impact_pct = price_impact_pct
        self.prices = prices if prices is not None else {
            USDC: PriceRecord(USDC, Decimal("1"), 6),
            BONK: PriceRecord(BONK, Decimal("0.5"), 6),
        }
        self.quote_error = quote_error
        self.price_error = price_error
        self.delay = delay
        self.calls: List[tuple] = []

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_pct: float,
    ) -> SwapQuote:
        self.calls.append(("get_quote", input_mint, output_mint, amount, slippage_pct))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.quote_error:
            raise self.quote_error
        return SwapQuote(
            input_mint=input_mint,
            output_mint=output_mint,
            in_amount=amount,
            out_amount=self.out_amount,
            price_impact_pct=self.price_impact_pct,
        )

    async def get_prices(self, token_ids: Iterable[str]) -> PriceMap:
        token_ids = list(token_ids)
        self.calls.append(("get_prices", token_ids))
        if self.price_error:
            raise self.price_error
        return PriceMap({k: v for k, v in self.prices.items() if k in token_ids})


@pytest.fixture
def chain_reader():
    """Chain reader for a clean token."""
    return FakeChainReader()


@pytest.fixture
def quote_provider():
    """Quote provider for a liquid token."""
    return FakeQuoteProvider()


@pytest.fixture
def missing_account_reader():
    """Chain reader for an account that does not exist."""
    return FakeChainReader(
        owner=None,
        mint_error=ChainReadError("Account does not exist"),
    )
