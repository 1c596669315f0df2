"""Swap simulation contracts.

Simulation only: the router call is built and dry-run, never signed or sent.
"""

from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, Field


class SwapTokensParams(BaseModel):
    """Parameters for swap_tokens."""

    from_token: str = Field(..., description="Input token symbol or address")
    to_token: str = Field(..., description="Output token symbol or address")
    amount_in_wei: Union[int, str] = Field(
        ..., description="Input amount in the input token's smallest units"
    )
    slippage_bps: int = Field(default=100, description="Slippage tolerance in basis points")
    fee: int = Field(default=3000, description="Uniswap V3 pool fee tier")
    recipient: Optional[str] = Field(None, description="Recipient (defaults to the signer)")
    price_limit: Optional[Union[int, str]] = Field(
        None,
        validation_alias=AliasChoices("price_limit", "sqrt_price_limit"),
        description="sqrtPriceLimitX96 bound (None or 0 = unbounded)",
    )


class SwapSimulationResult(BaseModel):
    """Outcome of a dry-run swap."""

    amount_out_estimate: str = Field(..., description="Quoted output, formatted")
    amount_out_min: str = Field(..., description="Minimum output after slippage, formatted")
    gas_estimate: str = Field(..., description="Estimated gas units, decimal string")
    calldata_hex: str = Field(..., description="Router calldata, 0x-prefixed")
    router: str = Field(..., description="SwapRouter address the calldata targets")
    amount_out_estimate_raw: str = Field(..., description="Quoted output in smallest units")
    amount_out_min_raw: str = Field(..., description="Minimum output in smallest units")
    recipient: str = Field(..., description="Recipient encoded in the calldata")
    deadline: int = Field(..., description="Unix deadline encoded in the calldata")
    fee: int = Field(..., description="Pool fee tier used")
