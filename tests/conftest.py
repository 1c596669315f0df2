"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Any, Optional

import pytest
from eth_abi import encode
from web3 import Web3

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["PRIVATE_KEY"] = ""
os.environ["DEBUG"] = "true"

from walletmcp.config import UNISWAP_V3_QUOTER_V2, UNISWAP_V3_SWAP_ROUTER, Settings
from walletmcp.node.abi import (
    ERROR_STRING_SELECTOR,
    FEED_DECIMALS,
    FEED_LATEST_ROUND_DATA,
    ContractFunction,
)
from walletmcp.node.client import NodeClient
from walletmcp.services.context import ServiceContext
from walletmcp.tokens.defaults import build_registry
from walletmcp.wallet import WalletManager

# Well-known development key (Hardhat account #0); holds nothing on mainnet
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_SIGNER = Web3.to_checksum_address("0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266")

VITALIK = Web3.to_checksum_address("0xd8da6bf26964af9d7eed9e03e53415d37aa96045")
NOW = 1_700_000_000

WETH = Web3.to_checksum_address("0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
USDC = Web3.to_checksum_address("0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48")
DAI = Web3.to_checksum_address("0x6b175474e89094c44da98b954eedeac495271d0f")
ETH_USD_FEED = Web3.to_checksum_address("0x5f4ec3df9cbd43714fe2740f5e3616155c5b8419")
USDC_USD_FEED = Web3.to_checksum_address("0x8fffffd4afb6115b954bd326cbe7b4ba576818f6")
USDC_ETH_FEED = Web3.to_checksum_address("0x986b5e1e1755e3c2440e960477f25201b0a8bbd4")
DAI_USD_FEED = Web3.to_checksum_address("0xaed0c38402a5d19df6e4c03f4e2dced6e29c1ee9")

QUOTER = UNISWAP_V3_QUOTER_V2
ROUTER = UNISWAP_V3_SWAP_ROUTER


def revert_error(reason: Optional[str] = None) -> dict:
    """Node error object for a reverted call, with Error(string) data."""
    error = {"code": 3, "message": "execution reverted"}
    if reason is not None:
        error["message"] = f"execution reverted: {reason}"
        error["data"] = "0x" + (ERROR_STRING_SELECTOR + encode(["string"], [reason])).hex()
    return error


class FakeNode:
    """Scripted JSON-RPC node.

    eth_call answers are keyed by (contract address, 4-byte selector);
    unscripted calls return empty data, like a call to an account without
    code.
    """

    def __init__(self):
        self.requests: list[tuple[str, list]] = []
        self.balances: dict[str, int] = {}
        self.chain_id = 1
        self.gas_estimate = 150_000
        self.estimate_error: Optional[dict] = None
        self._calls: dict[tuple[str, bytes], dict] = {}
        self.closed = False

    def on_call(self, address: str, fn: ContractFunction, *outputs: Any) -> None:
        data = encode(list(fn.outputs), list(outputs))
        self._calls[(address.lower(), fn.selector)] = {"result": "0x" + data.hex()}

    def on_revert(self, address: str, fn: ContractFunction, reason: Optional[str] = None) -> None:
        self._calls[(address.lower(), fn.selector)] = {"error": revert_error(reason)}

    def set_feed(
        self, feed: str, answer: int, decimals: int = 8, updated_at: int = NOW - 60
    ) -> None:
        self.on_call(feed, FEED_DECIMALS, decimals)
        self.on_call(feed, FEED_LATEST_ROUND_DATA, 1, answer, updated_at, updated_at, 1)

    def count(
        self,
        method: str,
        address: Optional[str] = None,
        fn: Optional[ContractFunction] = None,
    ) -> int:
        total = 0
        for m, params in self.requests:
            if m != method:
                continue
            if address is not None and params[0]["to"].lower() != address.lower():
                continue
            if fn is not None and not params[0]["data"].startswith("0x" + fn.selector.hex()):
                continue
            total += 1
        return total

    async def request(self, method: str, params: list) -> dict:
        self.requests.append((method, params))
        # Yield so concurrent requests interleave like real network calls
        await asyncio.sleep(0)

        if method == "eth_getBalance":
            return {"jsonrpc": "2.0", "id": 1, "result": hex(self.balances.get(params[0].lower(), 0))}
        if method == "eth_chainId":
            return {"jsonrpc": "2.0", "id": 1, "result": hex(self.chain_id)}
        if method == "eth_estimateGas":
            if self.estimate_error:
                return {"jsonrpc": "2.0", "id": 1, "error": self.estimate_error}
            return {"jsonrpc": "2.0", "id": 1, "result": hex(self.gas_estimate)}
        if method == "eth_call":
            tx = params[0]
            data = bytes.fromhex(tx["data"][2:])
            scripted = self._calls.get((tx["to"].lower(), data[:4]), {"result": "0x"})
            return {"jsonrpc": "2.0", "id": 1, **scripted}
        return {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "method not found"}}

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_node() -> FakeNode:
    return FakeNode()


@pytest.fixture
def node(fake_node) -> NodeClient:
    return NodeClient(fake_node, timeout=1.0, retry_backoff=0)


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def wallet() -> WalletManager:
    return WalletManager.from_private_key(TEST_PRIVATE_KEY)


@pytest.fixture
def settings() -> Settings:
    return Settings(private_key=TEST_PRIVATE_KEY, _env_file=None)


@pytest.fixture
def context(settings, node, registry, wallet) -> ServiceContext:
    return ServiceContext(
        settings=settings,
        node=node,
        registry=registry,
        wallet=wallet,
        clock=lambda: NOW,
    )
