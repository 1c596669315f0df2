"""Tests for the token registry and token defaults."""

import asyncio
import json

import pytest
from web3 import Web3

from walletmcp.errors import (
    ConfigurationError,
    SerializationError,
    UnsupportedAssetError,
    UpstreamError,
    ValidationError,
    WalletIOError,
)
from walletmcp.node.abi import ERC20_DECIMALS, ERC20_SYMBOL, ERC20_SYMBOL_BYTES32
from walletmcp.tokens.defaults import build_registry, load_bundled_tokens
from walletmcp.tokens.models import PLACEHOLDER_SYMBOL, QuoteUnit, TokenMetadata
from walletmcp.tokens.registry import TokenRegistry

from conftest import DAI, USDC, WETH

UNKNOWN = Web3.to_checksum_address("0x6982508145454ce325ddbe47a25d4ec3d2311933")


class TestDefaults:
    """Tests for bundled token defaults."""

    def test_bundled_tokens(self):
        """Test the bundled list loads with exact decimals and feeds."""
        tokens = {t.symbol: t for t in load_bundled_tokens()}

        assert tokens["USDC"].decimals == 6
        assert tokens["WETH"].decimals == 18
        assert tokens["WBTC"].decimals == 8
        assert tokens["USDC"].feed_for(QuoteUnit.USD) is not None
        # DAI only has a USD feed, so DAI/ETH needs the pivot
        assert tokens["DAI"].feed_for(QuoteUnit.ETH) is None
        assert all(t.default_fee == 3000 for t in tokens.values())

    def test_extra_file_layered(self, tmp_path):
        """Test an extra defaults file adds tokens without replacing bundled ones."""
        path = tmp_path / "tokens.json"
        path.write_text(
            json.dumps(
                [
                    {"symbol": "pepe", "address": UNKNOWN.lower(), "decimals": 18},
                    {"symbol": "USDC", "address": UNKNOWN, "decimals": 18},
                ]
            )
        )
        registry = build_registry(str(path))

        assert registry._get("PEPE").address == UNKNOWN
        assert registry._get("USDC").address == USDC
        assert registry._get("USDC").decimals == 6

    def test_missing_file(self, tmp_path):
        """Test an unreadable extra file is an I/O error."""
        with pytest.raises(WalletIOError):
            build_registry(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON is a serialization error."""
        path = tmp_path / "tokens.json"
        path.write_text("[{")
        with pytest.raises(SerializationError):
            build_registry(str(path))

    def test_invalid_entry(self, tmp_path):
        """Test an entry missing decimals is a configuration error."""
        path = tmp_path / "tokens.json"
        path.write_text(json.dumps([{"symbol": "X", "address": UNKNOWN}]))
        with pytest.raises(ConfigurationError):
            build_registry(str(path))


class TestLookup:
    """Tests for registry lookups without network access."""

    @pytest.mark.asyncio
    async def test_symbol_case_insensitive(self, registry):
        """Test symbols match regardless of case."""
        assert (await registry.lookup("usdc")).address == USDC
        assert (await registry.lookup(" Dai ")).address == DAI

    @pytest.mark.asyncio
    async def test_eth_alias(self, registry):
        """Test ETH resolves to the WETH entry."""
        assert (await registry.lookup("ETH")).address == WETH

    @pytest.mark.asyncio
    async def test_address_any_case(self, registry):
        """Test lowercase addresses resolve to the checksummed entry."""
        assert (await registry.lookup(USDC.lower())).symbol == "USDC"

    @pytest.mark.asyncio
    async def test_unknown(self, registry):
        """Test unknown symbols return None."""
        assert await registry.lookup("NOPE") is None

    @pytest.mark.asyncio
    async def test_counter_assets(self, registry):
        """Test canonical counter-assets for each quote unit."""
        assert (await registry.counter_asset(QuoteUnit.USD)).symbol == "USDC"
        assert (await registry.counter_asset(QuoteUnit.ETH)).symbol == "WETH"


class TestDiscovery:
    """Tests for on-chain discovery of unknown tokens."""

    @pytest.mark.asyncio
    async def test_resolve_symbol_no_network(self, registry, node, fake_node):
        """Test known symbols resolve without node calls."""
        token = await registry.resolve("USDC", node)
        assert token.decimals == 6
        assert fake_node.requests == []

    @pytest.mark.asyncio
    async def test_unknown_symbol(self, registry, node):
        """Test unknown symbols are unsupported."""
        with pytest.raises(UnsupportedAssetError):
            await registry.resolve("NOPE", node)

    @pytest.mark.asyncio
    async def test_malformed_address(self, registry, node, fake_node):
        """Test malformed addresses fail validation without node calls."""
        with pytest.raises(ValidationError):
            await registry.resolve("0x1234", node)
        assert fake_node.requests == []

    @pytest.mark.asyncio
    async def test_hex_prefixed_symbol(self, registry, node, fake_node):
        """Test a symbol starting with 0x is looked up as a symbol."""
        with pytest.raises(UnsupportedAssetError):
            await registry.resolve("0xBTC", node)

        registry.add(TokenMetadata(address=UNKNOWN, symbol="0xBTC", decimals=8))
        assert (await registry.resolve("0xbtc", node)).address == UNKNOWN
        assert fake_node.requests == []

    @pytest.mark.asyncio
    async def test_uppercase_prefix_address(self, registry, node):
        """Test an address with a 0X prefix resolves like 0x."""
        token = await registry.resolve("0X" + USDC[2:], node)
        assert token.symbol == "USDC"

    @pytest.mark.asyncio
    async def test_discovers_unknown_address(self, registry, node, fake_node):
        """Test an unknown address is discovered and registered."""
        fake_node.on_call(UNKNOWN, ERC20_DECIMALS, 18)
        fake_node.on_call(UNKNOWN, ERC20_SYMBOL, "pepe")

        token = await registry.resolve(UNKNOWN.lower(), node)

        assert token.address == UNKNOWN
        assert token.symbol == "PEPE"
        assert token.decimals == 18
        assert token.discovered
        assert (await registry.lookup("PEPE")) is token

    @pytest.mark.asyncio
    async def test_ensure_idempotent(self, registry, node, fake_node):
        """Test repeated ensure returns identical metadata and stores one entry."""
        fake_node.on_call(UNKNOWN, ERC20_DECIMALS, 9)
        fake_node.on_call(UNKNOWN, ERC20_SYMBOL, "PEPE")
        before = len(registry)

        first = await registry.ensure(UNKNOWN, node)
        second = await registry.ensure(UNKNOWN, node)

        assert first == second
        assert len(registry) == before + 1
        assert fake_node.count("eth_call", UNKNOWN, ERC20_DECIMALS) == 1

    @pytest.mark.asyncio
    async def test_concurrent_discovery_first_insert_wins(self, registry, node, fake_node):
        """Test racing discoveries both fetch but only the first entry is kept."""
        fake_node.on_call(UNKNOWN, ERC20_DECIMALS, 18)
        fake_node.on_call(UNKNOWN, ERC20_SYMBOL, "PEPE")
        before = len(registry)

        results = await asyncio.gather(*(registry.ensure(UNKNOWN, node) for _ in range(3)))

        assert len(registry) == before + 1
        assert all(r is results[0] for r in results)
        assert fake_node.count("eth_call", UNKNOWN, ERC20_DECIMALS) >= 1

    @pytest.mark.asyncio
    async def test_decimals_revert_unsupported(self, registry, node, fake_node):
        """Test a token without decimals() is unsupported and not stored."""
        fake_node.on_revert(UNKNOWN, ERC20_DECIMALS)
        before = len(registry)

        with pytest.raises(UnsupportedAssetError):
            await registry.ensure(UNKNOWN, node)
        assert len(registry) == before

    @pytest.mark.asyncio
    async def test_decimals_missing_unsupported(self, registry, node):
        """Test an address without code is unsupported."""
        with pytest.raises(UnsupportedAssetError):
            await registry.ensure(UNKNOWN, node)

    @pytest.mark.asyncio
    async def test_node_failure_propagates(self, registry, node, fake_node):
        """Test node failures during discovery stay upstream errors."""
        fake_node.on_call(UNKNOWN, ERC20_DECIMALS, 18)

        async def broken(method, params):
            return {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "bad"}}

        fake_node.request = broken
        with pytest.raises(UpstreamError) as exc_info:
            await registry.ensure(UNKNOWN, node)
        assert not isinstance(exc_info.value, UnsupportedAssetError)

    @pytest.mark.asyncio
    async def test_symbol_placeholder(self, registry, node, fake_node):
        """Test a missing symbol() falls back to the placeholder, never indexed."""
        fake_node.on_call(UNKNOWN, ERC20_DECIMALS, 18)

        token = await registry.ensure(UNKNOWN, node)

        assert token.symbol == PLACEHOLDER_SYMBOL
        assert await registry.lookup(PLACEHOLDER_SYMBOL) is None

    @pytest.mark.asyncio
    async def test_bytes32_symbol(self, registry, node, fake_node):
        """Test bytes32 symbol() returns are decoded."""
        fake_node.on_call(UNKNOWN, ERC20_DECIMALS, 18)
        fake_node.on_call(UNKNOWN, ERC20_SYMBOL_BYTES32, b"MKR".ljust(32, b"\x00"))

        token = await registry.ensure(UNKNOWN, node)
        assert token.symbol == "MKR"

    @pytest.mark.asyncio
    async def test_discovered_cannot_hijack_symbol(self, registry, node, fake_node):
        """Test a discovered contract claiming a known symbol keeps the original mapping."""
        fake_node.on_call(UNKNOWN, ERC20_DECIMALS, 6)
        fake_node.on_call(UNKNOWN, ERC20_SYMBOL, "USDC")

        token = await registry.ensure(UNKNOWN, node)

        assert token.symbol == "USDC"
        assert (await registry.lookup("USDC")).address == USDC
        assert (await registry.lookup(UNKNOWN)) is token


class TestTokenMetadata:
    """Tests for TokenMetadata."""

    def test_decimals_range(self):
        """Test decimals outside 0..255 are rejected."""
        with pytest.raises(ValueError):
            TokenMetadata(address=USDC, symbol="X", decimals=256)

    @pytest.mark.asyncio
    async def test_insert_keeps_first(self):
        """Test insert never overwrites an existing entry."""
        registry = TokenRegistry()
        first = TokenMetadata(address=USDC, symbol="USDC", decimals=6)
        second = TokenMetadata(address=USDC, symbol="USDC", decimals=18)

        assert await registry.insert(first) is first
        assert await registry.insert(second) is first
        assert len(registry) == 1
