"""Balance resolver: native and ERC-20 balances read from chain state."""

import logging
from typing import Optional

from walletmcp.contracts.balances import BalanceResult
from walletmcp.node.abi import ERC20_BALANCE_OF
from walletmcp.node.client import NodeClient
from walletmcp.tokens.registry import TokenRegistry
from walletmcp.utils.units import format_units, require_address

logger = logging.getLogger(__name__)

NATIVE_SYMBOL = "ETH"
NATIVE_DECIMALS = 18


class BalanceResolver:
    """Reads balances and formats them with registry decimals."""

    def __init__(self, node: NodeClient, registry: TokenRegistry):
        self.node = node
        self.registry = registry

    async def get_balance(self, address: str, token: Optional[str] = None) -> BalanceResult:
        """Get the balance of address, natively or for a token.

        Args:
            address: Account to query; validated before any network call
            token: Token symbol or contract address. None or "ETH" reads the
                native balance.

        Returns:
            BalanceResult with raw and formatted amounts
        """
        account = require_address(address, "address")

        if token is None or token.strip().upper() == NATIVE_SYMBOL:
            raw = await self.node.get_balance(account)
            return self._result(NATIVE_SYMBOL, raw, NATIVE_DECIMALS)

        meta = await self.registry.resolve(token, self.node)
        (raw,) = await self.node.call_function(meta.address, ERC20_BALANCE_OF, account)
        logger.debug(f"balanceOf({account}) on {meta.symbol} = {raw}")
        return self._result(meta.symbol, int(raw), meta.decimals)

    @staticmethod
    def _result(symbol: str, raw: int, decimals: int) -> BalanceResult:
        return BalanceResult(
            symbol=symbol,
            raw=str(raw),
            decimals=decimals,
            formatted=format_units(raw, decimals),
        )
