"""Balance, pricing and swap simulation services."""

from walletmcp.services.balance import BalanceResolver
from walletmcp.services.context import ServiceContext, ServiceLayer
from walletmcp.services.pricing import PriceEngine
from walletmcp.services.swap import SwapSimulator

__all__ = [
    "BalanceResolver",
    "PriceEngine",
    "ServiceContext",
    "ServiceLayer",
    "SwapSimulator",
]
