"""Swap simulation engine for Uniswap V3 single-hop exact-input swaps.

Steps, each depending on the previous one:

1. validate the request (no network access)
2. resolve both tokens and require a signer
3. quote through QuoterV2 at the requested fee tier
4. derive amount_out_min from the slippage tolerance
5. build exactInputSingle calldata for the SwapRouter
6. estimate gas, then dry-run the call with eth_call

The transaction is never signed or submitted.
"""

import logging
import time
from typing import Callable

from walletmcp.contracts.swaps import SwapSimulationResult, SwapTokensParams
from walletmcp.errors import ContractRevertError, SimulationError, ValidationError
from walletmcp.node.abi import QUOTER_EXACT_INPUT_SINGLE, ROUTER_EXACT_INPUT_SINGLE
from walletmcp.node.client import NodeClient, build_tx
from walletmcp.tokens.registry import TokenRegistry
from walletmcp.utils.units import MAX_UINT160, format_units, parse_uint, require_address
from walletmcp.wallet import WalletManager

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000
MAX_FEE_TIER = 1_000_000  # Uniswap fee units are hundredths of a bip
DEFAULT_DEADLINE_SECONDS = 600


def min_amount_out(amount_out: int, slippage_bps: int) -> int:
    """Floor of amount_out * (10000 - slippage_bps) / 10000."""
    return amount_out * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


class SwapSimulator:
    """Builds and dry-runs SwapRouter.exactInputSingle calls."""

    def __init__(
        self,
        node: NodeClient,
        registry: TokenRegistry,
        wallet: WalletManager,
        router_address: str,
        quoter_address: str,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.node = node
        self.registry = registry
        self.wallet = wallet
        self.router_address = router_address
        self.quoter_address = quoter_address
        self.deadline_seconds = deadline_seconds
        self.clock = clock

    @staticmethod
    def validate(request: SwapTokensParams) -> tuple[int, int]:
        """Check everything that can be checked offline.

        Returns:
            (amount_in, price_limit) as integers
        """
        amount_in = parse_uint(request.amount_in_wei, "amount_in_wei")
        if amount_in == 0:
            raise ValidationError("amount_in_wei must be greater than zero")
        if not 0 <= request.slippage_bps <= BPS_DENOMINATOR:
            raise ValidationError(
                f"slippage_bps must be between 0 and {BPS_DENOMINATOR}, got {request.slippage_bps}"
            )
        if not 0 < request.fee <= MAX_FEE_TIER:
            raise ValidationError(f"fee tier out of range: {request.fee}")
        price_limit = 0
        if request.price_limit not in (None, ""):
            price_limit = parse_uint(request.price_limit, "price_limit", max_value=MAX_UINT160)
        if request.recipient:
            require_address(request.recipient, "recipient")
        return amount_in, price_limit

    async def simulate_swap(self, request: SwapTokensParams) -> SwapSimulationResult:
        """Quote, build and dry-run a swap.

        Raises:
            ValidationError: malformed request, before any network call
            WalletError: no signer configured
            UnsupportedAssetError: a token cannot be resolved
            SimulationError: quote, gas estimation or dry-run failed
            UpstreamError: the node failed
        """
        amount_in, price_limit = self.validate(request)
        sender = self.wallet.require_address()
        recipient = require_address(request.recipient, "recipient") if request.recipient else sender

        token_in = await self.registry.resolve(request.from_token, self.node)
        token_out = await self.registry.resolve(request.to_token, self.node)
        if token_in.address == token_out.address:
            raise ValidationError("from_token and to_token must differ")

        # Quote
        try:
            amount_out, _, _, _ = await self.node.call_function(
                self.quoter_address,
                QUOTER_EXACT_INPUT_SINGLE,
                (token_in.address, token_out.address, amount_in, request.fee, price_limit),
            )
        except ContractRevertError as e:
            raise SimulationError(
                f"Quote failed for {token_in.symbol}->{token_out.symbol} at fee {request.fee}",
                reason=e.reason,
            ) from e
        if amount_out == 0:
            raise SimulationError(
                f"No liquidity for {token_in.symbol}->{token_out.symbol} at fee {request.fee}"
            )

        amount_out_min = min_amount_out(int(amount_out), request.slippage_bps)
        deadline = int(self.clock()) + self.deadline_seconds

        calldata = ROUTER_EXACT_INPUT_SINGLE.encode(
            (
                token_in.address,
                token_out.address,
                request.fee,
                recipient,
                deadline,
                amount_in,
                amount_out_min,
                price_limit,
            )
        )
        tx = build_tx(self.router_address, calldata, sender=sender)

        try:
            gas = await self.node.estimate_gas(tx)
        except ContractRevertError as e:
            raise SimulationError("Gas estimation reverted", reason=e.reason) from e
        try:
            await self.node.simulate(tx)
        except ContractRevertError as e:
            raise SimulationError("Dry-run reverted", reason=e.reason) from e

        logger.info(
            f"Simulated swap {amount_in} {token_in.symbol} -> {amount_out} {token_out.symbol} "
            f"(min {amount_out_min}, gas {gas})"
        )

        return SwapSimulationResult(
            amount_out_estimate=format_units(int(amount_out), token_out.decimals),
            amount_out_min=format_units(amount_out_min, token_out.decimals),
            gas_estimate=str(gas),
            calldata_hex="0x" + calldata.hex(),
            router=self.router_address,
            amount_out_estimate_raw=str(amount_out),
            amount_out_min_raw=str(amount_out_min),
            recipient=recipient,
            deadline=deadline,
            fee=request.fee,
        )
