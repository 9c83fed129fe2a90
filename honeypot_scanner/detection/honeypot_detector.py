"""Honeypot detection from authority state, program ownership and swap economics."""

import asyncio
import math
from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Awaitable, Iterable, List, Optional, TypeVar

from ..core.exceptions import (
    ChainReadError,
    InvalidTokenAddressError,
    QuoteProviderError,
)
from ..core.interfaces import (
    ChainStateReader,
    PriceMap,
    PriceRecord,
    SwapQuote,
    SwapQuoteProvider,
    validate_token_address,
)
from ..utils.config import get_config
from ..utils.logger import LoggerMixin
from ..utils.metrics import evidence_items
from .evidence import CheckName, Evidence, Severity, Verdict


T = TypeVar("T")

MSG_MINT_FETCH_FAILED = "failed to fetch mint info"
MSG_ACCOUNT_FETCH_FAILED = "unable to fetch account info"
MSG_SWAP_PROVIDER_FAILED = "failed to query swap provider — verify manually"
MSG_NO_PRICE_DATA = "no price data available for consistency check"


def _format_amount(value: Decimal) -> str:
    """Format a token amount without exponent notation."""
    text = f"{value:.9f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


class HoneypotDetector(LoggerMixin):
    """
    Decides whether a token is a honeypot.

    Three independent checks are run concurrently against the target token:

    - Authority audit: mint and freeze authorities must be revoked
    - Ownership: the mint must be owned by a standard token program
    - Liquidity simulation: a swap route must exist and its quote must be
      within the slippage tolerance of the spot price

    Any WARNING or FATAL evidence marks the token as a honeypot.
    """

    def __init__(
        self,
        chain_reader: ChainStateReader,
        quote_provider: SwapQuoteProvider,
        trial_amount: Optional[int] = None,
        slippage_pct: Optional[float] = None,
        standard_programs: Optional[Iterable[str]] = None,
        call_timeout: Optional[float] = None,
    ):
        self.config = get_config()
        self.chain_reader = chain_reader
        self.quote_provider = quote_provider

        self.trial_amount = trial_amount if trial_amount is not None else self.config.trial_amount
        self.slippage_pct = slippage_pct if slippage_pct is not None else self.config.slippage_pct
        if self.trial_amount <= 0:
            raise ValueError("Trial amount must be positive")
        if not 0 <= self.slippage_pct < 100:
            raise ValueError("Slippage must be in the range [0, 100)")

        if standard_programs is None:
            standard_programs = self.config.get_standard_token_programs()
        self.standard_programs = frozenset(standard_programs)

        timeout = call_timeout if call_timeout is not None else self.config.check_timeout_seconds
        self.call_timeout = timeout if timeout and timeout > 0 else None

    @property
    def slippage_fraction(self) -> Decimal:
        return Decimal(str(self.slippage_pct)) / Decimal(100)

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """Await an external call, bounded by the configured timeout."""
        if self.call_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.call_timeout)

    async def check_token(self, base_token: str, target_token: str) -> Verdict:
        """
        Run all checks on a token.

        Args:
            base_token: Reference token spent in the swap simulation
            target_token: Token under evaluation

        Returns:
            Verdict with evidence ordered authority, ownership, liquidity

        Raises:
            InvalidTokenAddressError: If either address is malformed
        """
        base_token = validate_token_address(base_token)
        target_token = validate_token_address(target_token)
        if base_token == target_token:
            raise InvalidTokenAddressError(target_token, "target must differ from base token")

        authority, ownership, liquidity = await asyncio.gather(
            self._check_authorities(target_token),
            self._check_ownership(target_token),
            self._check_liquidity(base_token, target_token),
        )

        verdict = Verdict(
            token_address=target_token,
            base_token_address=base_token,
            evidence=[*authority, *ownership, *liquidity],
        )

        for item in verdict.evidence:
            evidence_items.labels(check=item.check.value, severity=item.severity.value).inc()

        self.logger.info(
            f"Check complete for {target_token}: "
            f"{'HONEYPOT' if verdict.is_honeypot else 'clean'} "
            f"({len(verdict.by_severity(Severity.WARNING))} warnings, "
            f"{len(verdict.by_severity(Severity.FATAL))} fatal)"
        )

        return verdict

    async def _check_authorities(self, token: str) -> List[Evidence]:
        """Check that mint and freeze authorities are revoked."""
        try:
            state = await self._call(self.chain_reader.read_mint_state(token))
        except (ChainReadError, asyncio.TimeoutError) as e:
            self.logger.error(f"Error fetching mint info for {token}: {e!r}")
            return [Evidence(CheckName.AUTHORITY, Severity.FATAL, MSG_MINT_FETCH_FAILED)]

        evidence = []

        if state.mint_authority_present:
            evidence.append(Evidence(
                CheckName.AUTHORITY,
                Severity.WARNING,
                "mint authority still active — possible uncontrolled dilution "
                f"(authority: {state.mint_authority})",
            ))
        else:
            evidence.append(Evidence(CheckName.AUTHORITY, Severity.PASS, "mint authority revoked"))

        if state.freeze_authority_present:
            evidence.append(Evidence(
                CheckName.AUTHORITY,
                Severity.WARNING,
                "freeze authority active — holder funds can be frozen "
                f"(authority: {state.freeze_authority})",
            ))
        else:
            evidence.append(Evidence(CheckName.AUTHORITY, Severity.PASS, "freeze authority revoked"))

        return evidence

    async def _check_ownership(self, token: str) -> List[Evidence]:
        """Check that the mint is governed by a standard token program."""
        try:
            owner = await self._call(self.chain_reader.read_account_owner(token))
        except (ChainReadError, asyncio.TimeoutError) as e:
            self.logger.error(f"Error fetching account info for {token}: {e!r}")
            owner = None

        if owner is None:
            return [Evidence(CheckName.OWNERSHIP, Severity.FATAL, MSG_ACCOUNT_FETCH_FAILED)]

        if owner in self.standard_programs:
            return [Evidence(CheckName.OWNERSHIP, Severity.PASS, "governed by standard token program")]

        return [Evidence(
            CheckName.OWNERSHIP,
            Severity.WARNING,
            "governed by non-standard program — may contain hidden transfer-blocking logic "
            f"(program: {owner})",
        )]

    async def _check_liquidity(self, base: str, target: str) -> List[Evidence]:
        """Simulate a swap and compare the quote against the spot price."""
        quote, prices = await asyncio.gather(
            self._call(self.quote_provider.get_quote(base, target, self.trial_amount, self.slippage_pct)),
            self._call(self.quote_provider.get_prices([target, base])),
            return_exceptions=True,
        )

        for result in (quote, prices):
            if isinstance(result, (QuoteProviderError, asyncio.TimeoutError)):
                self.logger.error(f"Swap provider lookup failed for {target}: {result!r}")
                return [Evidence(CheckName.LIQUIDITY, Severity.FATAL, MSG_SWAP_PROVIDER_FAILED)]
            if isinstance(result, BaseException):
                raise result

        return [
            self._evaluate_route(quote),
            self._evaluate_price_consistency(quote, prices, base, target),
        ]

    def _evaluate_route(self, quote: SwapQuote) -> Evidence:
        """A non-zero quoted output means a route exists."""
        if quote.route_exists:
            message = "sell route exists"
            if quote.price_impact_pct is not None and math.isfinite(quote.price_impact_pct):
                message += f" (price impact {quote.price_impact_pct:g})"
            return Evidence(CheckName.LIQUIDITY, Severity.PASS, message)
        return Evidence(
            CheckName.LIQUIDITY,
            Severity.WARNING,
            "no sell route found — possible honeypot or dead liquidity",
        )

    def _evaluate_price_consistency(
        self,
        quote: SwapQuote,
        prices: PriceMap,
        base: str,
        target: str,
    ) -> Evidence:
        """
        Compare the quoted output with the output implied by spot prices.

        Only a lower bound is enforced; a quote better than the spot price is
        never flagged.
        """
        target_price = prices.get(target)
        base_price = prices.get(base)
        if not self._has_usable_price(target_price) or not self._has_usable_price(base_price):
            self.logger.warning(f"No usable price data for {target} against {base}")
            return Evidence(CheckName.LIQUIDITY, Severity.FATAL, MSG_NO_PRICE_DATA)

        trial = Decimal(self.trial_amount)
        quoted = Decimal(quote.out_amount)
        if base_price.decimals is not None and target_price.decimals is not None:
            trial = trial / (Decimal(10) ** base_price.decimals)
            quoted = quoted / (Decimal(10) ** target_price.decimals)

        try:
            unit_price = target_price.usd_price / base_price.usd_price
            expected = trial / unit_price
        except (DivisionByZero, InvalidOperation):
            return Evidence(CheckName.LIQUIDITY, Severity.FATAL, MSG_NO_PRICE_DATA)

        lower_bound = expected * (Decimal(1) - self.slippage_fraction)
        values = f"(quoted {_format_amount(quoted)}, minimum {_format_amount(lower_bound)})"

        if quoted >= lower_bound:
            return Evidence(
                CheckName.LIQUIDITY,
                Severity.PASS,
                f"quote consistent with price and slippage tolerance {values}",
            )

        return Evidence(
            CheckName.LIQUIDITY,
            Severity.WARNING,
            "quote deviates beyond slippage tolerance from expected price — possible honeypot, "
            f"thin liquidity, or price manipulation {values}",
        )

    @staticmethod
    def _has_usable_price(record: Optional[PriceRecord]) -> bool:
        return record is not None and record.usd_price.is_finite() and record.usd_price > 0
