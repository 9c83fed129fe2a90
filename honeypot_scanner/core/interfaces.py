"""Collaborator interfaces and the records exchanged across them."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Iterator, Mapping, Optional, Protocol

from solders.pubkey import Pubkey

from .exceptions import InvalidTokenAddressError


def validate_token_address(address: str) -> str:
    """
    Check that a string parses as a Solana public key.

    Args:
        address: Base58 encoded address

    Returns:
        The address, stripped of surrounding whitespace

    Raises:
        InvalidTokenAddressError: If the address cannot be parsed
    """
    if not isinstance(address, str) or not address.strip():
        raise InvalidTokenAddressError(str(address), "empty address")

    address = address.strip()
    try:
        Pubkey.from_string(address)
    except ValueError as e:
        raise InvalidTokenAddressError(address, str(e)) from e
    return address


@dataclass(frozen=True)
class MintState:
    """Authority and supply fields of an SPL mint account."""

    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None
    decimals: int = 0
    supply: int = 0

    @property
    def mint_authority_present(self) -> bool:
        return self.mint_authority is not None

    @property
    def freeze_authority_present(self) -> bool:
        return self.freeze_authority is not None


@dataclass(frozen=True)
class SwapQuote:
    """Best route returned by the swap provider."""

    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int = 0
    price_impact_pct: Optional[float] = None

    @property
    def route_exists(self) -> bool:
        return self.out_amount > 0


@dataclass(frozen=True)
class PriceRecord:
    """Spot price of a single token in USD."""

    token_id: str
    usd_price: Decimal
    decimals: Optional[int] = None


@dataclass
class PriceMap(Mapping[str, PriceRecord]):
    """Address-keyed price lookup. Unknown addresses resolve to ``None``."""

    records: Dict[str, PriceRecord] = field(default_factory=dict)

    def __getitem__(self, token_id: str) -> PriceRecord:
        return self.records[token_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def get(self, token_id: str, default: Optional[PriceRecord] = None) -> Optional[PriceRecord]:
        return self.records.get(token_id, default)


class ChainStateReader(Protocol):
    """Reads mint and ownership data from the chain."""

    async def read_mint_state(self, token_id: str) -> MintState:
        """Raises ChainReadError if the mint cannot be read."""
        ...

    async def read_account_owner(self, token_id: str) -> Optional[str]:
        """Return the owning program, or None if the account does not exist."""
        ...


class SwapQuoteProvider(Protocol):
    """Quotes swaps and spot prices."""

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_pct: float,
    ) -> SwapQuote:
        """Raises QuoteProviderError on transport failure."""
        ...

    async def get_prices(self, token_ids: Iterable[str]) -> PriceMap:
        """Raises QuoteProviderError on transport failure."""
        ...
