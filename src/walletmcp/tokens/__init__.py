"""Token metadata registry and defaults."""

from walletmcp.tokens.models import QuoteUnit, TokenMetadata
from walletmcp.tokens.registry import TokenRegistry

__all__ = ["QuoteUnit", "TokenMetadata", "TokenRegistry"]
