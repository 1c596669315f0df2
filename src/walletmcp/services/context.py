"""Shared context: one handle composing node, registry, signer and engines.

Created once at startup and passed to every request handler. The registry
is owned here; there is no module-level instance.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from walletmcp.config import Settings
from walletmcp.contracts.balances import BalanceResult, GetBalanceParams
from walletmcp.contracts.prices import GetTokenPriceParams, PriceResult
from walletmcp.contracts.swaps import SwapSimulationResult, SwapTokensParams
from walletmcp.errors import ConfigurationError
from walletmcp.node.client import NodeClient
from walletmcp.node.transport import HttpJsonRpcTransport, NodeTransport
from walletmcp.services.balance import BalanceResolver
from walletmcp.services.pricing import PriceEngine
from walletmcp.services.swap import SwapSimulator
from walletmcp.tokens.defaults import build_registry
from walletmcp.tokens.registry import TokenRegistry
from walletmcp.utils.units import require_address
from walletmcp.wallet import WalletManager

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    """Everything a request handler needs."""

    settings: Settings
    node: NodeClient
    registry: TokenRegistry
    wallet: WalletManager
    clock: Callable[[], float] = time.time
    balances: BalanceResolver = field(init=False)
    prices: PriceEngine = field(init=False)
    swaps: SwapSimulator = field(init=False)

    def __post_init__(self):
        quoter = require_address(self.settings.uniswap_quoter_v2, "UNISWAP_QUOTER_V2")
        router = require_address(self.settings.uniswap_swap_router, "UNISWAP_SWAP_ROUTER")
        self.balances = BalanceResolver(self.node, self.registry)
        self.prices = PriceEngine.default(
            self.node,
            self.registry,
            quoter_address=quoter,
            stale_after_seconds=self.settings.oracle_stale_after_seconds,
            clock=self.clock,
        )
        self.swaps = SwapSimulator(
            self.node,
            self.registry,
            self.wallet,
            router_address=router,
            quoter_address=quoter,
            deadline_seconds=self.settings.swap_deadline_seconds,
            clock=self.clock,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[NodeTransport] = None,
    ) -> "ServiceContext":
        """Build the context from settings; transport defaults to HTTP JSON-RPC."""
        transport = transport or HttpJsonRpcTransport(
            settings.eth_rpc_url, timeout=settings.rpc_timeout_seconds
        )
        node = NodeClient(
            transport,
            timeout=settings.rpc_timeout_seconds,
            retry_backoff=settings.rpc_retry_backoff_seconds,
        )
        return cls(
            settings=settings,
            node=node,
            registry=build_registry(settings.token_defaults_path),
            wallet=WalletManager.from_settings(settings),
        )

    async def verify_chain(self) -> int:
        """Check the node serves the configured chain; return its chain id.

        Raises:
            ConfigurationError: if the node reports a different chain
            UpstreamError: if the node cannot be reached
        """
        chain_id = await self.node.get_chain_id()
        expected = self.settings.default_chain_id
        if chain_id != expected:
            raise ConfigurationError(
                f"Node serves chain {chain_id}, expected {expected}",
                data={"expected": expected, "actual": chain_id},
            )
        logger.info(f"Connected to chain {chain_id}")
        return chain_id

    async def aclose(self) -> None:
        await self.node.transport.aclose()


class ServiceLayer:
    """The three tools, taking and returning contract models."""

    def __init__(self, context: ServiceContext):
        self.context = context

    async def get_balance(self, params: GetBalanceParams) -> BalanceResult:
        result = await self.context.balances.get_balance(params.address, params.token)
        logger.info(f"get_balance {params.address} {result.symbol}: {result.formatted}")
        return result

    async def get_token_price(self, params: GetTokenPriceParams) -> PriceResult:
        return await self.context.prices.get_price(params.base, params.quote)

    async def swap_tokens(self, params: SwapTokensParams) -> SwapSimulationResult:
        logger.info(
            f"swap_tokens {params.amount_in_wei} {params.from_token} -> {params.to_token} "
            f"(fee {params.fee}, slippage {params.slippage_bps}bps)"
        )
        return await self.context.swaps.simulate_swap(params)
