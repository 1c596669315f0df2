"""Token registry: concurrently readable cache of token metadata.

The registry is created once at startup and passed around explicitly. It
only ever grows. Unknown addresses are discovered on chain without holding
any lock; the insert then re-checks under the write lock and the first
entry stored for an address wins.
"""

import logging
from typing import Iterable, Optional

from web3 import Web3

from walletmcp.errors import UnsupportedAssetError, ValidationError
from walletmcp.node.client import NodeClient
from walletmcp.tokens.erc20 import fetch_token_metadata
from walletmcp.tokens.models import COUNTER_ASSETS, QuoteUnit, TokenMetadata
from walletmcp.utils.locks import ReadWriteLock
from walletmcp.utils.units import is_hex_identifier, require_address

logger = logging.getLogger(__name__)

# Symbols that refer to another registry entry
SYMBOL_ALIASES = {"ETH": "WETH"}


def normalize_symbol(symbol: str) -> str:
    symbol = symbol.strip().upper()
    return SYMBOL_ALIASES.get(symbol, symbol)


def is_address_like(identifier: str) -> bool:
    return is_hex_identifier(identifier)


class TokenRegistry:
    """Address-keyed token metadata with a symbol index."""

    def __init__(self, tokens: Iterable[TokenMetadata] = ()):
        self._by_address: dict[str, TokenMetadata] = {}
        self._by_symbol: dict[str, str] = {}
        self._lock = ReadWriteLock("token-registry")
        for token in tokens:
            self.add(token)

    def __len__(self) -> int:
        return len(self._by_address)

    def add(self, token: TokenMetadata) -> TokenMetadata:
        """Register a token during startup, before any request runs."""
        return self._store(token)

    def _store(self, token: TokenMetadata) -> TokenMetadata:
        address = Web3.to_checksum_address(token.address)
        existing = self._by_address.get(address)
        if existing is not None:
            return existing
        self._by_address[address] = token
        # A discovered contract can never take over a known symbol
        if not token.has_placeholder_symbol:
            self._by_symbol.setdefault(token.symbol.upper(), address)
        return token

    def _get(self, identifier: str) -> Optional[TokenMetadata]:
        if is_address_like(identifier):
            return self._by_address.get(require_address(identifier.strip(), "token"))
        address = self._by_symbol.get(normalize_symbol(identifier))
        return self._by_address.get(address) if address else None

    async def lookup(self, identifier: str) -> Optional[TokenMetadata]:
        """Find a registered token by symbol or address. No network access."""
        if is_address_like(identifier):
            identifier = require_address(identifier.strip(), "token")
        async with self._lock.read():
            return self._get(identifier)

    async def insert(self, token: TokenMetadata) -> TokenMetadata:
        """Insert unless an entry already exists; return the stored entry."""
        async with self._lock.write():
            stored = self._store(token)
        if stored is token:
            logger.info(f"Registered token {token.symbol} at {token.address}")
        else:
            logger.debug(f"Token {token.address} already registered, keeping first entry")
        return stored

    async def ensure(self, address: str, node: NodeClient) -> TokenMetadata:
        """Return metadata for an address, discovering it on chain if needed.

        Raises:
            ValidationError: malformed address
            UnsupportedAssetError: the contract does not expose decimals()
            UpstreamError: node failure during discovery
        """
        address = require_address(address, "token")
        async with self._lock.read():
            existing = self._by_address.get(address)
        if existing is not None:
            return existing

        logger.info(f"Discovering token metadata for {address}")
        discovered = await fetch_token_metadata(node, address)
        return await self.insert(discovered)

    async def resolve(self, identifier: str, node: NodeClient) -> TokenMetadata:
        """Resolve a symbol or address to token metadata.

        Symbols must already be registered; addresses are discovered on demand.
        """
        if not isinstance(identifier, str) or not identifier.strip():
            raise ValidationError("Token identifier must be a non-empty string")
        identifier = identifier.strip()
        if is_address_like(identifier):
            return await self.ensure(identifier, node)

        token = await self.lookup(identifier)
        if token is None:
            raise UnsupportedAssetError(f"Unknown token symbol: {identifier}")
        return token

    async def counter_asset(self, quote: QuoteUnit) -> Optional[TokenMetadata]:
        """Canonical token for market quotes in a unit (USDC for USD, WETH for ETH)."""
        return await self.lookup(COUNTER_ASSETS[quote])
