"""Node client wrapper: typed read-only calls with a bounded retry policy.

Every failure is classified once, here, into transient, revert or node
failures. Only transient failures are retried, and only once. Nothing in
this module can submit a transaction.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional

import httpx
from eth_abi.exceptions import DecodingError

from walletmcp.errors import ContractRevertError, UpstreamError
from walletmcp.node.abi import ContractFunction, decode_revert_reason
from walletmcp.node.transport import NodeTransport

logger = logging.getLogger(__name__)

# Node error codes
EXECUTION_REVERTED = 3
LIMIT_EXCEEDED = -32005
INTERNAL_ERROR = -32603


class FailureKind(str, Enum):
    TRANSIENT = "transient"
    REVERT = "revert"
    NODE = "node"


class NodeRpcError(Exception):
    """An error object returned inside a JSON-RPC response envelope."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
        self.data = data


class MalformedResponseError(Exception):
    """The node answered, but not with something we can use."""


def classify_failure(exc: BaseException) -> FailureKind:
    """Map a raw failure to its kind. Pure; depends only on the exception."""
    if isinstance(exc, (asyncio.TimeoutError, httpx.TransportError)):
        return FailureKind.TRANSIENT
    # Malformed responses, including non-JSON bodies
    if isinstance(exc, (MalformedResponseError, ValueError)):
        return FailureKind.TRANSIENT
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 429 or status >= 500:
            return FailureKind.TRANSIENT
        return FailureKind.NODE
    if isinstance(exc, NodeRpcError):
        if exc.code == EXECUTION_REVERTED or "revert" in exc.message.lower():
            return FailureKind.REVERT
        if exc.code == LIMIT_EXCEEDED:
            return FailureKind.TRANSIENT
        if exc.code == INTERNAL_ERROR and not exc.data:
            return FailureKind.TRANSIENT
    return FailureKind.NODE


def should_retry(kind: FailureKind, attempt: int) -> bool:
    """At most one retry, and only for transient failures."""
    return kind is FailureKind.TRANSIENT and attempt == 0


def build_tx(
    to: str,
    data: bytes,
    sender: Optional[str] = None,
    value: int = 0,
) -> dict:
    """Build a JSON-RPC transaction object for eth_call / eth_estimateGas."""
    tx = {"to": to, "data": "0x" + data.hex()}
    if sender:
        tx["from"] = sender
    if value:
        tx["value"] = hex(value)
    return tx


def _revert_data(data: Any) -> bytes:
    """Pull raw revert bytes out of the various shapes nodes use."""
    if isinstance(data, dict):
        data = data.get("data")
    if isinstance(data, str) and data.startswith("0x"):
        try:
            return bytes.fromhex(data[2:])
        except ValueError:
            return b""
    return b""


def _hex_to_int(value: Any, method: str) -> int:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise MalformedResponseError(f"{method} returned non-hex quantity {value!r}")
    return int(value, 16)


def _hex_to_bytes(value: Any, method: str) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise MalformedResponseError(f"{method} returned non-hex data {value!r}")
    try:
        return bytes.fromhex(value[2:])
    except ValueError as e:
        raise MalformedResponseError(f"{method} returned invalid hex: {e}") from e


class NodeClient:
    """Read-only node operations used by the registry and the engines."""

    def __init__(
        self,
        transport: NodeTransport,
        timeout: float = 10.0,
        retry_backoff: float = 0.25,
    ):
        self.transport = transport
        self.timeout = timeout
        self.retry_backoff = retry_backoff

    async def _request(
        self,
        method: str,
        params: list[Any],
        parse: Optional[Callable[[Any, str], Any]] = None,
    ) -> Any:
        """Send one request, retrying once on a transient failure.

        `parse` runs inside the retry scope, so a garbled result is retried
        like any other malformed response.
        """
        attempt = 0
        while True:
            try:
                envelope = await asyncio.wait_for(
                    self.transport.request(method, params), timeout=self.timeout
                )
                result = self._unwrap(method, envelope)
                return parse(result, method) if parse else result
            except (
                httpx.HTTPError,
                asyncio.TimeoutError,
                NodeRpcError,
                MalformedResponseError,
                ValueError,
            ) as e:
                kind = classify_failure(e)
                if should_retry(kind, attempt):
                    logger.warning(f"{method} failed ({e!r}), retrying once")
                    attempt += 1
                    await asyncio.sleep(self.retry_backoff)
                    continue
                raise self._surface(method, e, kind) from e

    @staticmethod
    def _unwrap(method: str, envelope: Any) -> Any:
        if not isinstance(envelope, dict):
            raise MalformedResponseError(f"{method}: response is not an object")
        error = envelope.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise MalformedResponseError(f"{method}: malformed error {error!r}")
            raise NodeRpcError(
                int(error.get("code", 0)),
                str(error.get("message", "")),
                error.get("data"),
            )
        if "result" not in envelope:
            raise MalformedResponseError(f"{method}: response has no result")
        return envelope["result"]

    @staticmethod
    def _surface(method: str, exc: BaseException, kind: FailureKind) -> Exception:
        if kind is FailureKind.REVERT:
            data = exc.data if isinstance(exc, NodeRpcError) else None
            reason = decode_revert_reason(_revert_data(data))
            if reason is None and isinstance(exc, NodeRpcError):
                reason = exc.message
            return ContractRevertError(f"{method} reverted", reason=reason)
        if isinstance(exc, asyncio.TimeoutError):
            return UpstreamError(f"{method} timed out")
        return UpstreamError(f"{method} failed: {exc}")

    async def get_balance(self, address: str) -> int:
        """Native balance in wei at the latest block."""
        return await self._request("eth_getBalance", [address, "latest"], _hex_to_int)

    async def call(
        self,
        to: str,
        data: bytes,
        sender: Optional[str] = None,
        value: int = 0,
    ) -> bytes:
        """Read-only eth_call against the latest block."""
        return await self.simulate(build_tx(to, data, sender=sender, value=value))

    async def call_function(self, to: str, fn: ContractFunction, *args: Any) -> tuple:
        """Encode, call and decode a contract function.

        Empty or undecodable return data is treated as a revert: the target
        either has no code or does not implement the function.
        """
        raw = await self.call(to, fn.encode(*args))
        if not raw:
            raise ContractRevertError(f"{fn.name} returned no data", reason="empty result")
        try:
            return fn.decode(raw)
        except (DecodingError, UnicodeDecodeError) as e:
            raise ContractRevertError(
                f"{fn.name} returned undecodable data", reason=str(e)
            ) from e

    async def get_chain_id(self) -> int:
        return await self._request("eth_chainId", [], _hex_to_int)

    async def estimate_gas(self, tx: dict) -> int:
        return await self._request("eth_estimateGas", [tx], _hex_to_int)

    async def simulate(self, tx: dict) -> bytes:
        """Dry-run a full transaction object with eth_call. Never commits state."""
        return await self._request("eth_call", [tx, "latest"], _hex_to_bytes)
