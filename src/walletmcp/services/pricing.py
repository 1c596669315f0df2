"""Price resolution engine.

Prices come from an ordered chain of strategies, first success wins:

1. chainlink-direct: the asset has a Chainlink feed in the requested unit
2. chainlink-pivot: derive the price through the ETH/USD reference feed
3. market-spot: Uniswap V3 QuoterV2 quote of one whole unit against the
   canonical counter-asset (USDC for USD, WETH for ETH)

All arithmetic is on integers. Oracle answers keep their own decimal scale
until they are brought to a common scale for division.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from walletmcp.contracts.prices import PriceResult
from walletmcp.errors import (
    ConfigurationError,
    ContractRevertError,
    PricingError,
    ValidationError,
)
from walletmcp.node.abi import (
    FEED_DECIMALS,
    FEED_LATEST_ROUND_DATA,
    QUOTER_EXACT_INPUT_SINGLE,
)
from walletmcp.node.client import NodeClient
from walletmcp.tokens.models import COUNTER_ASSETS, QuoteUnit, TokenMetadata
from walletmcp.tokens.registry import TokenRegistry
from walletmcp.utils.units import format_units

logger = logging.getLogger(__name__)

# Scale used for pivoted (divided) prices
PIVOT_DECIMALS = 18

# Registry entry whose USD feed is the ETH/USD reference
ETH_REFERENCE_SYMBOL = "WETH"


@dataclass(frozen=True)
class OracleRound:
    """Latest round of a Chainlink feed."""

    feed: str
    answer: int
    decimals: int
    updated_at: int
    stale: bool = False


class OracleReader:
    """Reads Chainlink aggregators and flags stale rounds."""

    def __init__(
        self,
        node: NodeClient,
        stale_after_seconds: int = 90000,
        clock: Callable[[], float] = time.time,
    ):
        self.node = node
        self.stale_after_seconds = stale_after_seconds
        self.clock = clock

    async def read(self, feed: str) -> OracleRound:
        """Read decimals() and latestRoundData() from a feed.

        Raises:
            PricingError: the feed reported a non-positive answer
            ContractRevertError: the feed call reverted
        """
        (decimals,) = await self.node.call_function(feed, FEED_DECIMALS)
        _, answer, _, updated_at, _ = await self.node.call_function(
            feed, FEED_LATEST_ROUND_DATA
        )
        if answer <= 0:
            raise PricingError(f"Feed {feed} returned non-positive answer {answer}")

        stale = self.is_stale(updated_at)
        if stale:
            age = int(self.clock()) - updated_at
            logger.warning(f"Feed {feed} round is stale: updated {age}s ago")
        return OracleRound(
            feed=feed,
            answer=int(answer),
            decimals=int(decimals),
            updated_at=int(updated_at),
            stale=stale,
        )

    def is_stale(self, updated_at: int) -> bool:
        if not self.stale_after_seconds:
            return False
        return self.clock() - updated_at > self.stale_after_seconds


def divide_scaled(
    numerator: int,
    numerator_decimals: int,
    denominator: int,
    denominator_decimals: int,
    out_decimals: int = PIVOT_DECIMALS,
) -> int:
    """Exact floor division of two fixed-point values into out_decimals.

    Both operands are brought to a common scale first so mismatched feed
    decimals never skew the ratio.
    """
    if denominator == 0:
        raise PricingError("Division by a zero reference price")
    scale = max(numerator_decimals, denominator_decimals)
    a = numerator * 10 ** (scale - numerator_decimals)
    b = denominator * 10 ** (scale - denominator_decimals)
    return a * 10**out_decimals // b


class PriceStrategy(ABC):
    """One step of the fallback chain."""

    source: str = ""

    @abstractmethod
    async def attempt(self, base: TokenMetadata, quote: QuoteUnit) -> Optional[PriceResult]:
        """Price base in quote.

        Returns:
            PriceResult, or None when this strategy does not apply

        Raises:
            PricingError / ContractRevertError: the strategy applied but failed;
                the engine moves on to the next one
        """
        pass


class DirectFeedStrategy(PriceStrategy):
    """Chainlink feed quoted directly in the requested unit."""

    source = "chainlink-direct"

    def __init__(self, oracle: OracleReader):
        self.oracle = oracle

    async def attempt(self, base: TokenMetadata, quote: QuoteUnit) -> Optional[PriceResult]:
        feed = base.feed_for(quote)
        if feed is None:
            return None
        round_ = await self.oracle.read(feed)
        return PriceResult(
            base=base.symbol,
            quote=quote.value,
            price=format_units(round_.answer, round_.decimals),
            source=self.source,
            decimals=round_.decimals,
            stale=round_.stale,
            updated_at=round_.updated_at,
        )


class PivotFeedStrategy(PriceStrategy):
    """Derive a price through the ETH/USD reference feed.

    ETH quote: base/USD divided by ETH/USD.
    USD quote: base/ETH multiplied by ETH/USD.
    """

    source = "chainlink-pivot"

    def __init__(self, oracle: OracleReader, registry: TokenRegistry):
        self.oracle = oracle
        self.registry = registry

    async def _reference_feed(self) -> Optional[str]:
        reference = await self.registry.lookup(ETH_REFERENCE_SYMBOL)
        return reference.feed_for(QuoteUnit.USD) if reference else None

    async def attempt(self, base: TokenMetadata, quote: QuoteUnit) -> Optional[PriceResult]:
        leg_unit = QuoteUnit.USD if quote is QuoteUnit.ETH else QuoteUnit.ETH
        leg_feed = base.feed_for(leg_unit)
        if leg_feed is None:
            return None
        reference_feed = await self._reference_feed()
        if reference_feed is None:
            logger.debug("No ETH/USD reference feed registered, pivot unavailable")
            return None

        leg = await self.oracle.read(leg_feed)
        eth_usd = await self.oracle.read(reference_feed)

        if quote is QuoteUnit.ETH:
            raw = divide_scaled(leg.answer, leg.decimals, eth_usd.answer, eth_usd.decimals)
            decimals = PIVOT_DECIMALS
        else:
            raw = leg.answer * eth_usd.answer
            decimals = leg.decimals + eth_usd.decimals

        return PriceResult(
            base=base.symbol,
            quote=quote.value,
            price=format_units(raw, decimals),
            source=self.source,
            decimals=decimals,
            stale=leg.stale or eth_usd.stale,
            updated_at=min(leg.updated_at, eth_usd.updated_at),
        )


class MarketSpotStrategy(PriceStrategy):
    """Uniswap V3 quote of one whole base unit into the counter-asset."""

    source = "market-spot"

    def __init__(self, node: NodeClient, registry: TokenRegistry, quoter_address: str):
        self.node = node
        self.registry = registry
        self.quoter_address = quoter_address

    async def attempt(self, base: TokenMetadata, quote: QuoteUnit) -> Optional[PriceResult]:
        counter = await self.registry.counter_asset(quote)
        if counter is None:
            raise ConfigurationError(
                f"No {COUNTER_ASSETS[quote]} counter-asset configured for {quote.value} quotes"
            )
        if counter.address == base.address:
            raise PricingError(f"Cannot market-price {base.symbol} against itself")

        amount_in = 10**base.decimals
        params = (base.address, counter.address, amount_in, base.default_fee, 0)
        amount_out, _, _, _ = await self.node.call_function(
            self.quoter_address, QUOTER_EXACT_INPUT_SINGLE, params
        )
        if amount_out == 0:
            raise PricingError(
                f"Pool {base.symbol}/{counter.symbol} (fee {base.default_fee}) returned zero output"
            )

        return PriceResult(
            base=base.symbol,
            quote=quote.value,
            price=format_units(int(amount_out), counter.decimals),
            source=self.source,
            decimals=counter.decimals,
            fee=base.default_fee,
        )


class PriceEngine:
    """Runs the strategy chain for a base asset and quote unit."""

    def __init__(
        self,
        node: NodeClient,
        registry: TokenRegistry,
        strategies: Sequence[PriceStrategy],
    ):
        self.node = node
        self.registry = registry
        self.strategies = list(strategies)

    @classmethod
    def default(
        cls,
        node: NodeClient,
        registry: TokenRegistry,
        quoter_address: str,
        stale_after_seconds: int = 90000,
        clock: Callable[[], float] = time.time,
    ) -> "PriceEngine":
        """Build the standard direct, pivot, market-spot chain."""
        oracle = OracleReader(node, stale_after_seconds=stale_after_seconds, clock=clock)
        return cls(
            node,
            registry,
            [
                DirectFeedStrategy(oracle),
                PivotFeedStrategy(oracle, registry),
                MarketSpotStrategy(node, registry, quoter_address),
            ],
        )

    async def get_price(self, base: str, quote: str = "USD") -> PriceResult:
        """Resolve the price of base in quote.

        Raises:
            ValidationError: unknown quote unit
            UnsupportedAssetError: base is not registered or discoverable
            ConfigurationError: market fallback needed but no counter-asset
            PricingError: every applicable strategy failed
            UpstreamError: the node failed
        """
        try:
            unit = QuoteUnit(quote.strip().upper())
        except (ValueError, AttributeError):
            raise ValidationError(f"Unsupported quote unit {quote!r}, expected USD or ETH") from None

        token = await self.registry.resolve(base, self.node)

        failures = []
        for strategy in self.strategies:
            try:
                result = await strategy.attempt(token, unit)
            except (PricingError, ContractRevertError) as e:
                logger.warning(f"{strategy.source} failed for {token.symbol}/{unit.value}: {e}")
                failures.append(f"{strategy.source}: {e.message}")
                continue
            if result is not None:
                logger.info(
                    f"Priced {token.symbol}/{unit.value} = {result.price} via {result.source}"
                )
                return result

        raise PricingError(
            f"No price available for {token.symbol} in {unit.value}",
            {"attempts": failures} if failures else None,
        )
