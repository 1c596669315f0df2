"""Minimal ABI fragments for the contracts this service reads.

Only the functions actually called are declared. Encoding and decoding go
through eth_abi; selectors come from the keccak hash of the canonical
signature.
"""

from dataclasses import dataclass
from typing import Any, Optional

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3


@dataclass(frozen=True)
class ContractFunction:
    """A single contract function: name plus input and output ABI types."""

    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature)[:4])

    def encode(self, *args: Any) -> bytes:
        """Build calldata: selector followed by the ABI-encoded arguments."""
        return self.selector + encode(list(self.inputs), list(args))

    def decode(self, data: bytes) -> tuple:
        """Decode return data. Raises on short or malformed payloads."""
        return tuple(decode(list(self.outputs), data))


# ERC-20
ERC20_DECIMALS = ContractFunction("decimals", (), ("uint8",))
ERC20_SYMBOL = ContractFunction("symbol", (), ("string",))
ERC20_SYMBOL_BYTES32 = ContractFunction("symbol", (), ("bytes32",))
ERC20_BALANCE_OF = ContractFunction("balanceOf", ("address",), ("uint256",))

# Chainlink AggregatorV3Interface
FEED_DECIMALS = ContractFunction("decimals", (), ("uint8",))
FEED_LATEST_ROUND_DATA = ContractFunction(
    "latestRoundData",
    (),
    ("uint80", "int256", "uint256", "uint256", "uint80"),
)

# Uniswap V3 QuoterV2: (tokenIn, tokenOut, amountIn, fee, sqrtPriceLimitX96)
QUOTER_EXACT_INPUT_SINGLE = ContractFunction(
    "quoteExactInputSingle",
    ("(address,address,uint256,uint24,uint160)",),
    ("uint256", "uint160", "uint32", "uint256"),
)

# Uniswap V3 SwapRouter:
# (tokenIn, tokenOut, fee, recipient, deadline, amountIn, amountOutMinimum, sqrtPriceLimitX96)
ROUTER_EXACT_INPUT_SINGLE = ContractFunction(
    "exactInputSingle",
    ("(address,address,uint24,address,uint256,uint256,uint256,uint160)",),
    ("uint256",),
)

# Solidity revert payloads
ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")


def decode_revert_reason(data: bytes) -> Optional[str]:
    """Extract a human-readable reason from revert data, if any."""
    if len(data) < 4:
        return None
    selector, payload = data[:4], data[4:]
    try:
        if selector == ERROR_STRING_SELECTOR:
            (reason,) = decode(["string"], payload)
            return reason
        if selector == PANIC_SELECTOR:
            (code,) = decode(["uint256"], payload)
            return f"panic 0x{code:02x}"
    except (DecodingError, UnicodeDecodeError):
        return None
    return None
