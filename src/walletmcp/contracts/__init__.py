"""Request and response contracts for the three tools.

These Pydantic models define the JSON interface. All operations are
read-only or simulation-only.
"""

from walletmcp.contracts.balances import BalanceResult, GetBalanceParams
from walletmcp.contracts.prices import GetTokenPriceParams, PriceResult
from walletmcp.contracts.swaps import SwapSimulationResult, SwapTokensParams

__all__ = [
    # Balance contracts
    "GetBalanceParams",
    "BalanceResult",
    # Price contracts
    "GetTokenPriceParams",
    "PriceResult",
    # Swap contracts
    "SwapTokensParams",
    "SwapSimulationResult",
]
