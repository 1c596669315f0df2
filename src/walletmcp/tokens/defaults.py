"""Static token defaults loaded into the registry at startup.

The bundled list covers mainnet majors with their Chainlink feeds. An extra
file with the same shape can be layered on top through TOKEN_DEFAULTS_PATH;
bundled entries win on address or symbol conflicts.
"""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Optional

from web3 import Web3

from walletmcp.errors import ConfigurationError, SerializationError, WalletIOError
from walletmcp.tokens.models import DEFAULT_FEE_TIER, QuoteUnit, TokenMetadata
from walletmcp.tokens.registry import TokenRegistry

logger = logging.getLogger(__name__)

BUNDLED_DEFAULTS = "token_defaults.json"


def parse_token_entry(entry: dict) -> TokenMetadata:
    """Build TokenMetadata from one JSON entry.

    Example entry:
        {"symbol": "USDC", "address": "0xA0b8...eB48", "decimals": 6,
         "chainlink_feeds": {"USD": "0x8fFf...18f6"}, "default_fee": 3000}
    """
    try:
        feeds = {
            QuoteUnit(unit.upper()): Web3.to_checksum_address(feed)
            for unit, feed in (entry.get("chainlink_feeds") or {}).items()
        }
        return TokenMetadata(
            address=Web3.to_checksum_address(entry["address"]),
            symbol=str(entry["symbol"]).strip().upper(),
            decimals=int(entry["decimals"]),
            feeds=feeds,
            default_fee=int(entry.get("default_fee") or DEFAULT_FEE_TIER),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid token defaults entry {entry!r}: {e}") from e


def _parse_document(text: str, source: str) -> list[TokenMetadata]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Token defaults {source} is not valid JSON: {e}") from e
    if not isinstance(document, list):
        raise ConfigurationError(f"Token defaults {source} must be a JSON list")
    return [parse_token_entry(entry) for entry in document]


def load_bundled_tokens() -> list[TokenMetadata]:
    text = resources.files("walletmcp.tokens").joinpath(BUNDLED_DEFAULTS).read_text(
        encoding="utf-8"
    )
    return _parse_document(text, BUNDLED_DEFAULTS)


def load_token_file(path: str) -> list[TokenMetadata]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise WalletIOError(f"Cannot read token defaults {path}: {e.strerror}") from e
    return _parse_document(text, path)


def build_registry(extra_path: Optional[str] = None) -> TokenRegistry:
    """Create the process-wide registry from bundled and optional extra defaults."""
    tokens = load_bundled_tokens()
    if extra_path:
        extra = load_token_file(extra_path)
        logger.info(f"Loaded {len(extra)} extra token defaults from {extra_path}")
        tokens.extend(extra)
    registry = TokenRegistry(tokens)
    logger.info(f"Token registry initialised with {len(registry)} tokens")
    return registry
