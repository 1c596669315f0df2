"""Token metadata held by the registry."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

DEFAULT_FEE_TIER = 3000  # 0.3% pool

# Substituted when a token's symbol() cannot be read. Never indexed by symbol.
PLACEHOLDER_SYMBOL = "ERC20"


class QuoteUnit(str, Enum):
    """Units a price can be quoted in."""

    USD = "USD"
    ETH = "ETH"


# Canonical counter-asset used for market quotes in each unit
COUNTER_ASSETS = {
    QuoteUnit.USD: "USDC",
    QuoteUnit.ETH: "WETH",
}


@dataclass(frozen=True)
class TokenMetadata:
    """Immutable description of an ERC-20 token.

    feeds maps a quote unit to the Chainlink aggregator pricing this token
    in that unit.
    """

    address: str
    symbol: str
    decimals: int
    feeds: dict[QuoteUnit, str] = field(default_factory=dict, hash=False)
    default_fee: int = DEFAULT_FEE_TIER
    discovered: bool = field(default=False, compare=False)

    def __post_init__(self):
        if not 0 <= self.decimals <= 255:
            raise ValueError(f"decimals out of range for {self.symbol}: {self.decimals}")

    def feed_for(self, quote: QuoteUnit) -> Optional[str]:
        """Chainlink feed quoting this token in the given unit, if any."""
        return self.feeds.get(quote)

    @property
    def has_placeholder_symbol(self) -> bool:
        return self.symbol == PLACEHOLDER_SYMBOL
