"""Solana RPC client with support for QuickNode and Helius providers."""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.pubkey import Pubkey
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..utils.config import get_config
from ..utils.logger import LoggerMixin
from ..utils.metrics import rpc_requests, rpc_request_duration
from .exceptions import ChainReadError
from .interfaces import MintState


RETRYABLE_ERRORS = (SolanaRpcException, asyncio.TimeoutError, ConnectionError)


def parse_mint_state(account: Any) -> MintState:
    """
    Build a MintState from a jsonParsed account value.

    Args:
        account: ``value`` of a getAccountInfo response (jsonParsed encoding)

    Returns:
        MintState

    Raises:
        ChainReadError: If the account is missing or is not a mint
    """
    if account is None:
        raise ChainReadError("Account does not exist")

    parsed = getattr(getattr(account, "data", None), "parsed", None)
    if not isinstance(parsed, dict):
        raise ChainReadError("Account data is not parsable as a token mint")

    if parsed.get("type") != "mint":
        raise ChainReadError(f"Account is not a mint (type={parsed.get('type')!r})")

    info: Dict[str, Any] = parsed.get("info") or {}
    if not isinstance(info, dict):
        raise ChainReadError(f"Malformed mint data: {info!r}")
    try:
        return MintState(
            mint_authority=info.get("mintAuthority"),
            freeze_authority=info.get("freezeAuthority"),
            decimals=int(info["decimals"]),
            supply=int(info.get("supply", 0)),
        )
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise ChainReadError(f"Malformed mint data: {e}") from e


class RPCClient(LoggerMixin):
    """
    Solana RPC client with automatic retry logic and provider switching.

    Supports both QuickNode and Helius providers with automatic failover.
    Implements the chain state reader used by the honeypot detector.
    """

    def __init__(self):
        self.config = get_config()
        self.primary_client: Optional[AsyncClient] = None
        self.backup_client: Optional[AsyncClient] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize RPC clients."""
        if self._initialized:
            return

        primary_url = self.config.get_rpc_url()
        if primary_url:
            self.primary_client = AsyncClient(
                primary_url, commitment=Confirmed, timeout=self.config.rpc_timeout
            )
            self.logger.info(f"Initialized primary RPC client: {self.config.primary_rpc_provider}")
        else:
            self.logger.error("No primary RPC URL configured")
            raise ValueError("Primary RPC URL is required")

        backup_url = self.config.get_backup_rpc_url()
        if backup_url:
            self.backup_client = AsyncClient(
                backup_url, commitment=Confirmed, timeout=self.config.rpc_timeout
            )
            self.logger.info(f"Initialized backup RPC client: {self.config.get_backup_rpc_provider()}")

        self._initialized = True
        self.logger.debug("RPC client initialization complete")

    async def close(self) -> None:
        """Close RPC clients."""
        if self.primary_client:
            await self.primary_client.close()
        if self.backup_client:
            await self.backup_client.close()
        self.primary_client = None
        self.backup_client = None
        self._initialized = False
        self.logger.debug("RPC client closed")

    async def _make_request(
        self,
        client: AsyncClient,
        pubkey: Pubkey,
        provider: str,
    ) -> Any:
        """
        Fetch jsonParsed account info with retry logic and metrics tracking.

        Args:
            client: Solana RPC client
            pubkey: Account to fetch
            provider: Provider name (for metrics)

        Returns:
            ``value`` of the getAccountInfo response (None if the account is absent)
        """
        method = "getAccountInfo"

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, self.config.rpc_max_retries)),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        ):
            with attempt:
                start_time = datetime.now()
                try:
                    response = await client.get_account_info_json_parsed(pubkey)
                except Exception as e:
                    duration = (datetime.now() - start_time).total_seconds()
                    rpc_request_duration.labels(provider=provider, method=method).observe(duration)
                    rpc_requests.labels(provider=provider, method=method, status="error").inc()
                    self.logger.warning(f"RPC request failed: {method} - {e}")
                    raise

                duration = (datetime.now() - start_time).total_seconds()
                rpc_request_duration.labels(provider=provider, method=method).observe(duration)
                rpc_requests.labels(provider=provider, method=method, status="success").inc()
                return response.value

    async def get_account_info(self, address: str) -> Any:
        """
        Get jsonParsed account information, falling back to the backup provider.

        Args:
            address: Account address

        Returns:
            Account value, or None if the account does not exist

        Raises:
            ChainReadError: If neither provider answered
        """
        if not self._initialized:
            await self.initialize()

        try:
            pubkey = Pubkey.from_string(address)
        except ValueError as e:
            raise ChainReadError(f"Invalid address {address}: {e}") from e

        try:
            return await self._make_request(
                self.primary_client,
                pubkey,
                self.config.primary_rpc_provider,
            )
        except Exception as e:
            self.logger.error(f"Failed to get account info for {address}: {e}")
            if not self.backup_client:
                raise ChainReadError(f"getAccountInfo failed for {address}: {e}") from e

        self.logger.info("Trying backup client...")
        try:
            return await self._make_request(
                self.backup_client,
                pubkey,
                self.config.get_backup_rpc_provider(),
            )
        except Exception as e:
            self.logger.error(f"Backup RPC also failed for {address}: {e}")
            raise ChainReadError(f"getAccountInfo failed for {address}: {e}") from e

    async def read_mint_state(self, token_id: str) -> MintState:
        """
        Read mint and freeze authorities of a token mint.

        Args:
            token_id: Token mint address

        Returns:
            MintState

        Raises:
            ChainReadError: On transport failure, missing account or non-mint data
        """
        account = await self.get_account_info(token_id)
        return parse_mint_state(account)

    async def read_account_owner(self, token_id: str) -> Optional[str]:
        """
        Read the program that owns an account.

        Args:
            token_id: Token mint address

        Returns:
            Owner program ID, or None if the account does not exist
        """
        account = await self.get_account_info(token_id)
        owner = getattr(account, "owner", None)
        if owner is None:
            return None
        return str(owner)

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
