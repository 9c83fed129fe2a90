"""Main scanner application orchestrator."""

import asyncio
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .core.exceptions import InvalidTokenAddressError
from .core.interfaces import ChainStateReader, SwapQuoteProvider, validate_token_address
from .core.jupiter_client import JupiterClient
from .core.rpc_client import RPCClient
from .detection.honeypot_detector import HoneypotDetector
from .detection.evidence import Verdict
from .utils.config import get_config
from .utils.logger import LoggerMixin
from .utils.metrics import (
    check_duration,
    honeypots_detected,
    start_metrics_server,
    tokens_checked,
)


class HoneypotScanner(LoggerMixin):
    """
    Main scanner application.

    Owns the RPC and Jupiter clients and runs the honeypot detector against
    one or more tokens.
    """

    def __init__(
        self,
        chain_reader: Optional[ChainStateReader] = None,
        quote_provider: Optional[SwapQuoteProvider] = None,
        trial_amount: Optional[int] = None,
        slippage_pct: Optional[float] = None,
    ):
        self.config = get_config()

        self.rpc_client = chain_reader or RPCClient()
        self.jupiter = quote_provider or JupiterClient()
        self.detector = HoneypotDetector(
            self.rpc_client,
            self.jupiter,
            trial_amount=trial_amount,
            slippage_pct=slippage_pct,
        )

        self._initialized = False
        self.logger.debug("Honeypot scanner created")

    async def initialize(self) -> None:
        """Initialize all scanner components."""
        if self._initialized:
            return

        start_metrics_server()

        for component in (self.rpc_client, self.jupiter):
            initialize = getattr(component, "initialize", None)
            if initialize is not None:
                await initialize()

        self._initialized = True
        self.logger.debug("All components initialized")

    async def stop(self) -> None:
        """Release network resources."""
        for component in (self.rpc_client, self.jupiter):
            close = getattr(component, "close", None)
            if close is not None:
                await close()

        self._initialized = False
        self.logger.debug("Scanner stopped")

    async def check(self, token_address: str, base_token: Optional[str] = None) -> Verdict:
        """
        Check a token and record metrics.

        Args:
            token_address: Token to evaluate
            base_token: Reference token (defaults to configured base token)

        Returns:
            Verdict

        Raises:
            InvalidTokenAddressError: If an address is malformed
        """
        base_token = validate_token_address(base_token or self.config.base_token_address)
        token_address = validate_token_address(token_address)

        if not self._initialized:
            await self.initialize()

        with check_duration.time():
            verdict = await self.detector.check_token(base_token, token_address)

        tokens_checked.inc()
        if verdict.is_honeypot:
            honeypots_detected.inc()
            self.logger.warning(f"🚨 {verdict.token_address} flagged as honeypot")

        return verdict

    async def scan_token(self, token_address: str, base_token: Optional[str] = None) -> Dict:
        """
        Scan a specific token.

        Args:
            token_address: Token address to scan
            base_token: Reference token (defaults to configured base token)

        Returns:
            Scan results dictionary
        """
        self.logger.info(f"Scan requested for {token_address}")

        verdict = await self.check(token_address, base_token)

        result = verdict.to_dict()
        result["scan_time"] = datetime.now().isoformat()
        result["trial_amount"] = self.detector.trial_amount
        result["slippage_pct"] = self.detector.slippage_pct
        return result

    async def scan_tokens(
        self,
        token_addresses: Iterable[str],
        base_token: Optional[str] = None,
    ) -> List[Dict]:
        """
        Scan several tokens concurrently.

        Invalid addresses do not abort the batch; they are reported with an
        ``error`` field instead of a verdict.

        Returns:
            One result per input address, in input order
        """
        addresses = list(token_addresses)
        results = await asyncio.gather(
            *(self.scan_token(address, base_token) for address in addresses),
            return_exceptions=True,
        )

        scans = []
        for address, result in zip(addresses, results):
            if isinstance(result, InvalidTokenAddressError):
                self.logger.error(str(result))
                scans.append({"token_address": address, "error": str(result)})
            elif isinstance(result, BaseException):
                raise result
            else:
                scans.append(result)
        return scans

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.stop()
