"""Balance lookup contracts."""

from typing import Optional

from pydantic import BaseModel, Field


class GetBalanceParams(BaseModel):
    """Parameters for get_balance."""

    address: str = Field(..., description="Account address (0x + 40 hex chars)")
    token: Optional[str] = Field(
        None, description="Token symbol or contract address (None = native ETH)"
    )


class BalanceResult(BaseModel):
    """Balance of one asset for one account."""

    symbol: str = Field(..., description="Asset symbol")
    raw: str = Field(..., description="Raw balance in smallest units, decimal string")
    decimals: int = Field(..., description="Asset decimals")
    formatted: str = Field(..., description="raw / 10**decimals, exact")
