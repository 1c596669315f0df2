"""On-chain discovery of ERC-20 metadata for unknown addresses."""

import logging

from walletmcp.errors import ContractRevertError, UnsupportedAssetError
from walletmcp.node.abi import ERC20_DECIMALS, ERC20_SYMBOL, ERC20_SYMBOL_BYTES32
from walletmcp.node.client import NodeClient
from walletmcp.tokens.models import PLACEHOLDER_SYMBOL, TokenMetadata

logger = logging.getLogger(__name__)


def _clean_symbol(raw) -> str:
    if isinstance(raw, bytes):
        raw = raw.rstrip(b"\x00").decode("utf-8", errors="ignore")
    return raw.strip().strip("\x00").upper()


async def fetch_decimals(node: NodeClient, address: str) -> int:
    """Read decimals(). Mandatory: a token without it is not supported.

    Raises:
        UnsupportedAssetError: if the call reverts or returns nothing usable
        UpstreamError: if the node itself failed
    """
    try:
        (decimals,) = await node.call_function(address, ERC20_DECIMALS)
    except ContractRevertError as e:
        raise UnsupportedAssetError(
            f"{address} is not a supported token: decimals() unavailable",
            {"reason": e.reason} if e.reason else None,
        ) from e
    return int(decimals)


async def fetch_symbol(node: NodeClient, address: str) -> str:
    """Read symbol(), accepting string or bytes32 returns.

    Falls back to the placeholder symbol when neither form is readable.
    """
    for fn in (ERC20_SYMBOL, ERC20_SYMBOL_BYTES32):
        try:
            (raw,) = await node.call_function(address, fn)
        except ContractRevertError:
            continue
        symbol = _clean_symbol(raw)
        if symbol:
            return symbol
    logger.info(f"symbol() unreadable for {address}, using {PLACEHOLDER_SYMBOL}")
    return PLACEHOLDER_SYMBOL


async def fetch_token_metadata(node: NodeClient, address: str) -> TokenMetadata:
    """Discover metadata for a token contract. address must be checksummed."""
    decimals = await fetch_decimals(node, address)
    symbol = await fetch_symbol(node, address)
    return TokenMetadata(address=address, symbol=symbol, decimals=decimals, discovered=True)
