"""Price resolution contracts."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

PriceSource = Literal["chainlink-direct", "chainlink-pivot", "market-spot"]


class GetTokenPriceParams(BaseModel):
    """Parameters for get_token_price."""

    base: str = Field(..., description="Token symbol or contract address to price")
    quote: Literal["USD", "ETH"] = Field(default="USD", description="Quote unit")

    @field_validator("quote", mode="before")
    @classmethod
    def _upper_quote(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class PriceResult(BaseModel):
    """Resolved price of one base asset in a quote unit."""

    base: str = Field(..., description="Base asset symbol")
    quote: str = Field(..., description="Quote unit (USD or ETH)")
    price: str = Field(..., description="Price as an exact decimal string")
    source: PriceSource = Field(..., description="Which resolution path produced the price")
    decimals: int = Field(..., description="Decimal scale the price was computed at")
    stale: bool = Field(default=False, description="An oracle round used is older than the threshold")
    updated_at: Optional[int] = Field(
        None, description="Unix time of the oldest oracle round used (None for market quotes)"
    )
    fee: Optional[int] = Field(None, description="Pool fee tier used for market quotes")
